from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING, TextIO

import pytest

from dissect.mdstat import monitor
from dissect.mdstat.query import busy, by_component, by_subdev, find_by_member
from dissect.mdstat.snapshot import parse

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def missing_mdstat(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("dissect.mdstat.snapshot.MDSTAT_PATH", str(tmp_path / "missing"))


@pytest.mark.parametrize(
    ("devnm", "result"),
    [
        ("md0", True),
        ("md1", True),
        ("md125", True),
        ("md3", False),
        ("sda1", False),
        ("md", False),
    ],
)
def test_busy(mdstat_file: Callable[[str], Path], devnm: str, result: bool) -> None:
    mdstat_file("mdstat.txt")

    assert busy(devnm) == result
    assert monitor.held_descriptor() is None


def test_busy_unreadable(missing_mdstat: None) -> None:
    assert not busy("md0")


def test_find_by_member(mdstat: TextIO) -> None:
    snapshot = parse(mdstat)

    assert find_by_member(snapshot, "sdb1").devnm == "md0"
    assert find_by_member(snapshot, "sde1").devnm == "md1"
    assert find_by_member(snapshot, "sdf1").devnm == "md2"
    assert find_by_member(snapshot, "sdz1") is None


def test_find_by_member_nested(mdstat_nested: TextIO) -> None:
    snapshot = parse(mdstat_nested)

    assert find_by_member(snapshot, "md0").devnm == "md3"
    assert find_by_member(snapshot, "md3").devnm == "md4"
    assert find_by_member(snapshot, "md4") is None


def test_find_by_member_skips_subarrays(mdstat_imsm: TextIO) -> None:
    snapshot = parse(mdstat_imsm)

    assert find_by_member(snapshot, "sda").devnm == "md127"
    assert find_by_member(snapshot, "sdb").devnm == "md127"
    assert find_by_member(snapshot, "sdc").devnm == "md124"


def test_find_by_member_first_in_order() -> None:
    snapshot = parse(StringIO("md0 : active raid1 sda1[0]\nmd1 : active raid1 sda1[0]\n"))

    assert find_by_member(snapshot, "sda1") is snapshot[0]


def test_by_component(mdstat_file: Callable[[str], Path]) -> None:
    mdstat_file("mdstat_imsm.txt")

    record = by_component("sdd")

    assert record.devnm == "md124"
    assert record.members == ["sde", "sdd", "sdc"]
    assert by_component("sdq") is None


def test_by_component_unreadable(missing_mdstat: None) -> None:
    assert by_component("sda") is None


@pytest.mark.parametrize(
    ("subdev", "container", "devnm"),
    [
        ("0", "md127", "md126"),
        ("1", "md124", "md125"),
        ("1", "md127", None),
        ("0", "md124", None),
        ("0", "md12", None),
    ],
)
def test_by_subdev(mdstat_file: Callable[[str], Path], subdev: str, container: str, devnm: str | None) -> None:
    mdstat_file("mdstat_imsm.txt")

    record = by_subdev(subdev, container)

    if devnm is None:
        assert record is None
    else:
        assert record.devnm == devnm
        assert record.is_container_member(container)


def test_by_subdev_unreadable(missing_mdstat: None) -> None:
    assert by_subdev("0", "md127") is None
