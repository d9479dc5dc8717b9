from __future__ import annotations

EXTERNAL_PREFIX = "external:"

# A subarray tail is either /container/subdev or -container/subdev. The latter is
# used while the metadata handler for the container is blocked.
SUBARRAY_MARKERS = ("/", "-")


def split_external(version: str | None) -> str | None:
    """Return the tail of an external metadata version, or ``None`` if ``version`` is not external."""
    if version is None or not version.startswith(EXTERNAL_PREFIX):
        return None
    return version[len(EXTERNAL_PREFIX) :]


def is_subarray(tail: str) -> bool:
    return tail.startswith(SUBARRAY_MARKERS)


def container_matches(tail: str, container: str) -> bool:
    """Check whether ``container`` is the container named in ``tail``."""
    if not tail.startswith(SUBARRAY_MARKERS):
        return False

    name = tail[1:]
    return name.startswith(container) and name[len(container) : len(container) + 1] == "/"


def subdev_matches(tail: str, subdev: str) -> bool:
    """Check whether ``subdev`` is the subarray named in ``tail``."""
    if not tail.startswith(SUBARRAY_MARKERS):
        return False

    _, sep, name = tail[1:].partition("/")
    return bool(sep) and name == subdev
