from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto

from dissect.mdstat.metadata import container_matches, is_subarray, split_external

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_MDSTAT", "CRITICAL"))


class ArrayState(Enum):
    UNKNOWN = auto()
    INACTIVE = auto()
    ACTIVE = auto()


class ResyncKind(Enum):
    NONE = auto()
    RESYNC = auto()
    RECOVERY = auto()
    RESHAPE = auto()
    CHECK = auto()


class PercentState(Enum):
    """Progress states of a background operation that carry no percentage."""

    NONE = auto()
    DELAYED = auto()
    PENDING = auto()
    REMOTE = auto()


class Level(IntEnum):
    """RAID personality identifiers, as numbered by Linux MD."""

    FAULTY = -5
    MULTIPATH = -4
    LINEAR = -1
    # The rest is really just the RAID number
    RAID0 = 0
    RAID1 = 1
    RAID4 = 4
    RAID5 = 5
    RAID6 = 6
    RAID10 = 10


LEVEL_NAMES = {
    "faulty": Level.FAULTY,
    "multipath": Level.MULTIPATH,
    "linear": Level.LINEAR,
}

RE_RAID_LEVEL = re.compile(r"raid([0-9]+)")
RE_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
RE_RAID_DISKS = re.compile(r"\[[0-9]")
RE_PERCENT = re.compile(r"[0-9].*%")

# Sentinel suffixes of a progress token, e.g. resync=DELAYED
PERCENT_SENTINELS = (
    ("=DELAYED", PercentState.DELAYED),
    ("=PENDING", PercentState.PENDING),
    ("=REMOTE", PercentState.REMOTE),
)

# Checked in order, a later match overrides an earlier one
RESYNC_WORDS = (
    ("resync", ResyncKind.RESYNC),
    ("reshape", ResyncKind.RESHAPE),
    ("recovery", ResyncKind.RECOVERY),
    ("check", ResyncKind.CHECK),
)


@dataclass
class ArrayRecord:
    """The status of a single MD array as reported in ``/proc/mdstat``.

    ``percent`` is either an integer between 0 and 100 or a :class:`PercentState`.
    ``members`` holds the short device names of the members in the order the kernel
    lists them, without their slot index and flags.
    """

    devnm: str
    active: ArrayState = ArrayState.UNKNOWN
    level: str | None = None
    pattern: str | None = None
    raid_disks: int = 0
    members: list[str] = field(default_factory=list)
    metadata_version: str | None = None
    resync_kind: ResyncKind = ResyncKind.NONE
    percent: int | PercentState = PercentState.NONE

    @property
    def devcnt(self) -> int:
        return len(self.members)

    @property
    def raid_level(self) -> Level | None:
        if self.level is None:
            return None

        if self.level in LEVEL_NAMES:
            return LEVEL_NAMES[self.level]

        if match := RE_RAID_LEVEL.fullmatch(self.level):
            try:
                return Level(int(match.group(1)))
            except ValueError:
                pass

        return None

    @property
    def is_degraded(self) -> bool:
        return self.pattern is not None and "_" in self.pattern

    @property
    def is_resyncing(self) -> bool:
        return self.resync_kind != ResyncKind.NONE

    @property
    def is_external(self) -> bool:
        """Whether the array metadata is managed by userspace."""
        return split_external(self.metadata_version) is not None

    @property
    def is_subarray(self) -> bool:
        """Whether the array is a subarray carved out of an external container."""
        tail = split_external(self.metadata_version)
        return tail is not None and is_subarray(tail)

    def is_container_member(self, container: str) -> bool:
        """Whether the array is a subarray of the container named ``container``, e.g. ``md127``."""
        tail = split_external(self.metadata_version)
        return tail is not None and container_matches(tail, container)


def _atoi(value: str) -> int:
    # Only the leading integer counts, anything after it (decimals, units) is ignored
    match = RE_LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def _find_component(previous: list[ArrayRecord], name: str, limit: int | None) -> int | None:
    """Return the index of the first record named ``name``, looking only in front of ``limit``."""
    end = len(previous) if limit is None else limit
    for idx in range(end):
        if previous[idx].devnm == name:
            return idx
    return limit


def parse_array_line(tokens: list[str], previous: list[ArrayRecord] | None = None) -> tuple[ArrayRecord, int | None]:
    """Parse the tokens of a single logical array line.

    The first token is the name of the array, every following token is classified
    by the first rule it matches. Tokens that match no rule are ignored. Parsing of
    the line stops at a ``bitmap:`` token.

    Args:
        tokens: The tokens of the logical line.
        previous: The records parsed from earlier lines of the same snapshot.

    Returns:
        The record and the index of the earliest record in ``previous`` that is a
        member of this array, or ``None`` if no earlier record is.
    """
    previous = previous or []
    words = iter(tokens)
    record = ArrayRecord(devnm=next(words))

    in_devs = False
    insert_before = None

    for token in words:
        if token == "active":
            record.active = ArrayState.ACTIVE

        elif token == "inactive":
            record.active = ArrayState.INACTIVE
            in_devs = True

        elif token == "bitmap:":
            # The bitmap status that follows looks like raid_disks and pattern tokens
            break

        elif record.active == ArrayState.ACTIVE and record.level is None and not token.startswith("("):
            # The "(" check skips the (read-only) and (auto-read-only) markers
            record.level = token
            in_devs = True

        elif in_devs and token == "blocks":
            in_devs = False

        elif in_devs:
            name, sep, _ = token.partition("[")
            if not sep:
                # Not a device
                continue

            record.members.append(name)
            if name.startswith("md"):
                insert_before = _find_component(previous, name, insert_before)

        elif token == "super" and (version := next(words, None)) is not None:
            record.metadata_version = version

        elif RE_RAID_DISKS.match(token):
            record.raid_disks = _atoi(token[1:])

        elif record.pattern is None and token[:2] in ("[U", "[_"):
            pattern = token[1:]
            if pattern.endswith("]"):
                pattern = pattern[:-1]
            record.pattern = pattern

        elif (
            record.percent == PercentState.NONE
            and token.startswith("re")
            and token.endswith("%")
            and "=" in token
        ):
            record.percent = _atoi(token.partition("=")[2])
            if token.startswith("resync"):
                record.resync_kind = ResyncKind.RESYNC
            elif token.startswith("reshape"):
                record.resync_kind = ResyncKind.RESHAPE
            else:
                record.resync_kind = ResyncKind.RECOVERY

        elif record.percent == PercentState.NONE and token[:1] in ("r", "c"):
            for word, kind in RESYNC_WORDS:
                if token.startswith(word):
                    record.resync_kind = kind

            for suffix, state in PERCENT_SENTINELS:
                if len(token) > len(suffix) and token.endswith(suffix):
                    record.percent = state

        elif record.percent == PercentState.NONE and RE_PERCENT.fullmatch(token):
            record.percent = _atoi(token)
            if record.resync_kind == ResyncKind.NONE:
                # A progress percentage without an operation name is a recovery
                record.resync_kind = ResyncKind.RECOVERY

    log.debug("Parsed array line of %s: %r", record.devnm, record)
    return record, insert_before
