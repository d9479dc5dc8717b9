from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Iterator

CONTINUATION = (" ", "\t")


def iter_logical_lines(fh: TextIO) -> Iterator[list[str]]:
    """Yield the tokens of every logical line in ``fh``.

    The status file wraps the details of an array over multiple physical lines. A
    physical line that starts with a space or a tab continues the previous logical
    line, any other physical line (including an empty one) ends it.

    Logical lines without any tokens are not yielded.
    """
    tokens: list[str] = []

    for line in fh:
        if tokens and line.startswith(CONTINUATION):
            tokens.extend(line.split())
            continue

        if tokens:
            yield tokens
        tokens = line.split()

    if tokens:
        yield tokens
