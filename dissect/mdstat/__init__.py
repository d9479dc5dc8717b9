from dissect.mdstat.exceptions import Error, SnapshotError
from dissect.mdstat.monitor import close, held_descriptor, wait, wait_fd
from dissect.mdstat.query import busy, by_component, by_subdev, find_by_member
from dissect.mdstat.record import (
    ArrayRecord,
    ArrayState,
    Level,
    PercentState,
    ResyncKind,
    parse_array_line,
)
from dissect.mdstat.snapshot import Snapshot, free_snapshot, parse, read

__all__ = [
    "ArrayRecord",
    "ArrayState",
    "Error",
    "Level",
    "PercentState",
    "ResyncKind",
    "Snapshot",
    "SnapshotError",
    "busy",
    "by_component",
    "by_subdev",
    "close",
    "find_by_member",
    "free_snapshot",
    "held_descriptor",
    "parse",
    "parse_array_line",
    "read",
    "wait",
    "wait_fd",
]
