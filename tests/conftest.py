from __future__ import annotations

import shutil
from pathlib import Path
from typing import IO, TYPE_CHECKING, TextIO

import pytest

from dissect.mdstat import monitor, snapshot

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def absolute_path(filename: str) -> Path:
    return Path(__file__).parent / filename


def open_file(name: str, mode: str = "r") -> Iterator[IO]:
    with absolute_path(name).open(mode) as fh:
        yield fh


@pytest.fixture(autouse=True)
def release_held_descriptor() -> Iterator[None]:
    yield
    monitor.close()


@pytest.fixture
def mdstat() -> Iterator[TextIO]:
    yield from open_file("_data/mdstat/mdstat.txt")


@pytest.fixture
def mdstat_nested() -> Iterator[TextIO]:
    yield from open_file("_data/mdstat/mdstat_nested.txt")


@pytest.fixture
def mdstat_imsm() -> Iterator[TextIO]:
    yield from open_file("_data/mdstat/mdstat_imsm.txt")


@pytest.fixture
def mdstat_22() -> Iterator[TextIO]:
    yield from open_file("_data/mdstat/mdstat_22.txt")


@pytest.fixture
def mdstat_24() -> Iterator[TextIO]:
    yield from open_file("_data/mdstat/mdstat_24.txt")


@pytest.fixture
def mdstat_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Callable[[str], Path]:
    """Point the status file location at a copy of one of the sample files."""
    path = tmp_path / "mdstat"

    def install(name: str) -> Path:
        shutil.copyfile(absolute_path(f"_data/mdstat/{name}"), path)
        return path

    monkeypatch.setattr(snapshot, "MDSTAT_PATH", str(path))
    return install
