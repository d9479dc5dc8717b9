from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, TextIO

from dissect.mdstat import monitor
from dissect.mdstat.exceptions import SnapshotError
from dissect.mdstat.lines import iter_logical_lines
from dissect.mdstat.record import ArrayRecord, parse_array_line

if TYPE_CHECKING:
    from collections.abc import Iterator

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_MDSTAT", "CRITICAL"))

MDSTAT_PATH = "/proc/mdstat"

HEADER_TOKENS = ("Personalities", "read_ahead", "unused")
MAX_DEVNM_LEN = 32


class Snapshot:
    """An ordered list of the arrays in a single read of the status file.

    Every array appears after all arrays it is composed of, unless the snapshot was
    read for starting arrays, in which case the order is reversed.
    """

    def __init__(self, records: list[ArrayRecord] | None = None):
        self.records = records if records is not None else []

    def __repr__(self) -> str:
        return f"<Snapshot arrays={[record.devnm for record in self.records]}>"

    def __iter__(self) -> Iterator[ArrayRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, idx: int) -> ArrayRecord:
        return self.records[idx]

    @property
    def names(self) -> list[str]:
        return [record.devnm for record in self.records]

    def find(self, devnm: str) -> ArrayRecord | None:
        for record in self.records:
            if record.devnm == devnm:
                return record
        return None

    def detach(self, record: ArrayRecord) -> ArrayRecord:
        """Remove ``record`` from the snapshot and return it.

        Records are matched by identity, so an equal record from another snapshot is
        not part of this one.
        """
        for idx, entry in enumerate(self.records):
            if entry is record:
                del self.records[idx]
                return record

        raise SnapshotError(f"Array {record.devnm} is not part of {self!r}")

    def clear(self) -> None:
        self.records.clear()


def free_snapshot(snapshot: Snapshot | None) -> None:
    if snapshot is not None:
        snapshot.clear()


def is_array_name(name: str) -> bool:
    """Check whether ``name`` looks like the name of an MD array, e.g. ``md0`` or ``md_d1``."""
    return name.startswith("md") and 2 < len(name) < MAX_DEVNM_LEN and (name[2] == "_" or name[2] in "0123456789")


def parse(fh: TextIO, start: bool = False) -> Snapshot:
    """Parse the contents of a status file into a :class:`Snapshot`.

    Header lines are skipped, as are lines that do not start with a valid array
    name. An array that has one of the earlier arrays as a member is inserted in
    front of the earliest such array, so that components always come last.

    Args:
        fh: A text file-like object with the contents of ``/proc/mdstat``.
        start: Reverse the order, so that components come first.
    """
    records: list[ArrayRecord] = []

    for tokens in iter_logical_lines(fh):
        name = tokens[0]
        if name in HEADER_TOKENS:
            continue

        if not is_array_name(name):
            log.debug("Skipping line starting with %r, not an array", name)
            continue

        record, insert_before = parse_array_line(tokens, records)
        if insert_before is not None:
            log.debug("Inserting %s in front of its component %s", record.devnm, records[insert_before].devnm)
            records.insert(insert_before, record)
        else:
            records.append(record)

    if start:
        records.reverse()

    return Snapshot(records)


def _open(hold: bool) -> TextIO:
    held = monitor.held_descriptor()
    if hold and held is not None:
        os.lseek(held, 0, os.SEEK_SET)
        fd = os.dup(held)
        try:
            os.set_inheritable(fd, False)
            return open(fd, encoding="utf-8", errors="surrogateescape")
        except OSError:
            os.close(fd)
            raise

    fh = open(MDSTAT_PATH, encoding="utf-8", errors="surrogateescape")
    try:
        os.set_inheritable(fh.fileno(), False)
    except OSError:
        fh.close()
        raise
    return fh


def read(hold: bool = False, start: bool = False) -> Snapshot | None:
    """Read a snapshot of the arrays currently known to the kernel.

    Args:
        hold: Keep a descriptor to the status file open after reading, so that
              :func:`dissect.mdstat.monitor.wait` can wait for changes. Subsequent
              reads with ``hold`` rewind and reuse the held descriptor.
        start: Reverse the order, so that components come first.

    Returns:
        The snapshot, or ``None`` if the status file could not be read.
    """
    try:
        with _open(hold) as fh:
            snapshot = parse(fh, start)

            if hold and monitor.held_descriptor() is None:
                monitor.hold(fh.fileno())
    except OSError as e:
        log.debug("Failed to read %s: %s", MDSTAT_PATH, e)
        return None

    return snapshot
