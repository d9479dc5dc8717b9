from __future__ import annotations

import logging
import os
import select
import signal
import stat
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_MDSTAT", "CRITICAL"))

# The kernel reports changes to /proc/mdstat as an exceptional condition, not as
# the descriptor becoming readable. Callers are expected to serialize access.
_mdstat_fd: int | None = None


def held_descriptor() -> int | None:
    return _mdstat_fd


def hold(fd: int) -> int:
    """Keep a duplicate of ``fd`` as the descriptor to wait on. Returns the duplicate."""
    global _mdstat_fd

    held = os.dup(fd)
    try:
        os.set_inheritable(held, False)
    except OSError:
        os.close(held)
        raise

    _mdstat_fd = held
    log.debug("Holding status file descriptor %d", held)
    return held


def close() -> None:
    """Close the held descriptor, if any."""
    global _mdstat_fd

    if _mdstat_fd is not None:
        log.debug("Closing status file descriptor %d", _mdstat_fd)
        os.close(_mdstat_fd)
    _mdstat_fd = None


def wait(seconds: float) -> int:
    """Wait up to ``seconds`` for the status file to change.

    Returns:
        1 if a change was reported, 0 on timeout and -1 on error or when no
        descriptor is held.
    """
    if _mdstat_fd is None:
        return -1

    try:
        _, _, exceptional = select.select([], [], [_mdstat_fd], seconds)
    except (OSError, ValueError) as e:
        log.debug("Waiting on status file descriptor %d failed: %s", _mdstat_fd, e)
        return -1

    return 1 if exceptional else 0


def wait_fd(fd: int | None, sigmask: Iterable[signal.Signals] | None = None) -> None:
    """Wait until the status file changes or ``fd`` has something to report.

    Regular files are assumed to live in ``/proc`` or ``/sys`` and are waited on
    for an exceptional condition, anything else for becoming readable. There is
    no timeout.

    Args:
        fd: An additional descriptor to wait on, or ``None``.
        sigmask: The signal mask of the calling thread while waiting. Any signal
                 that is handled while waiting ends the wait.
    """
    rlist = []
    xlist = []

    if _mdstat_fd is not None:
        xlist.append(_mdstat_fd)

    if fd is not None and fd >= 0:
        try:
            mode = os.fstat(fd).st_mode
        except OSError as e:
            log.debug("Cannot wait on descriptor %d: %s", fd, e)
            return

        if stat.S_ISREG(mode):
            xlist.append(fd)
        else:
            rlist.append(fd)

    # A handled signal writes to the wakeup pipe, which ends the wait even though
    # select itself is restarted after the handler returns
    wake_r, wake_w = os.pipe()
    os.set_blocking(wake_r, False)
    os.set_blocking(wake_w, False)
    rlist.append(wake_r)

    old_wakeup = None
    old_mask = None
    try:
        try:
            old_wakeup = signal.set_wakeup_fd(wake_w)
        except ValueError:
            # Only the main thread may set a wakeup descriptor
            log.debug("Not in the main thread, signals will not end the wait")

        if sigmask is not None:
            old_mask = signal.pthread_sigmask(signal.SIG_SETMASK, sigmask)

        select.select(rlist, [], xlist)
    finally:
        if old_mask is not None:
            signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)
        if old_wakeup is not None:
            signal.set_wakeup_fd(old_wakeup)
        _drain(wake_r)
        os.close(wake_r)
        os.close(wake_w)


def _drain(fd: int) -> None:
    try:
        while os.read(fd, 512):
            pass
    except BlockingIOError:
        pass
