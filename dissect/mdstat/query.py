from __future__ import annotations

import logging
import os

from dissect.mdstat import snapshot as _snapshot
from dissect.mdstat.metadata import container_matches, split_external, subdev_matches
from dissect.mdstat.record import ArrayRecord
from dissect.mdstat.snapshot import Snapshot, free_snapshot

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_MDSTAT", "CRITICAL"))


def busy(devnm: str) -> bool:
    """Check whether the kernel currently knows an array named ``devnm``."""
    mdstat = _snapshot.read()
    if mdstat is None:
        return False

    found = mdstat.find(devnm) is not None
    free_snapshot(mdstat)
    return found


def find_by_member(mdstat: Snapshot, member_devnm: str) -> ArrayRecord | None:
    """Return the first array that has ``member_devnm`` as a member.

    Subarrays of external containers are skipped, as their members are also
    listed for the container itself.
    """
    for record in mdstat:
        if record.is_subarray:
            continue

        if member_devnm in record.members:
            return record

    return None


def by_component(name: str) -> ArrayRecord | None:
    """Read a snapshot and return the array that has ``name`` as a member."""
    mdstat = _snapshot.read()
    if mdstat is None:
        return None

    record = find_by_member(mdstat, name)
    if record is not None:
        mdstat.detach(record)

    free_snapshot(mdstat)
    return record


def by_subdev(subdev: str, container: str) -> ArrayRecord | None:
    """Read a snapshot and return subarray ``subdev`` of the external container ``container``.

    Args:
        subdev: The name of the subarray within the container, e.g. ``0``.
        container: The array name of the container, e.g. ``md127``.
    """
    mdstat = _snapshot.read()
    if mdstat is None:
        return None

    found = None
    for record in mdstat:
        tail = split_external(record.metadata_version)
        if tail is None:
            continue

        if container_matches(tail, container) and subdev_matches(tail, subdev):
            found = record
            break

    if found is not None:
        mdstat.detach(found)
    else:
        log.debug("No subarray %s found in container %s", subdev, container)

    free_snapshot(mdstat)
    return found
