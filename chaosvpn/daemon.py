"""Detaching from the terminal and supervising a child process."""

from __future__ import annotations

import os
import signal
import subprocess
import time
from typing import IO, List, Optional

from . import log


class DaemonError(OSError):
    """Raised when detaching or starting a child process fails."""


def _fix_fds() -> None:
    """Make sure file descriptors 0, 1 and 2 are open, to /dev/null if need be."""
    fds = [os.open(os.devnull, os.O_RDWR) for _ in range(3)]
    for fd in fds:
        if fd > 2:
            os.close(fd)


def daemonize() -> bool:
    """Detach from the controlling terminal with a double fork.

    The original process exits; the daemon continues and gets True back.
    """
    if not hasattr(os, "fork"):
        return True

    try:
        pid = os.fork()
    except OSError as exc:
        raise DaemonError(f"fork failed: {exc}") from exc
    if pid > 0:
        os._exit(0)

    try:
        pid = os.fork()
    except OSError:
        os._exit(1)
    if pid > 0:
        os._exit(0)

    os.umask(0)

    try:
        os.setsid()
    except OSError as exc:
        log.err("daemonize(): setsid() failed: %s", exc.strerror)
        raise DaemonError(f"setsid failed: {exc}") from exc

    try:
        os.chdir("/")
    except OSError as exc:
        log.warn('daemonize(): chdir("/") failed: %s', exc.strerror)

    for fd in (0, 1, 2):
        try:
            os.close(fd)
        except OSError:
            pass
    _fix_fds()
    return True


class Daemon:
    """A child program that can be started, stopped and restarted."""

    def __init__(self, path: str, *args: str) -> None:
        self.path: str = path
        self.arguments: List[str] = list(args)
        self.process: Optional[subprocess.Popen] = None
        self.pid: Optional[int] = None
        self.stderr: Optional[IO[bytes]] = None

    def add_param(self, param: str) -> None:
        """Append one argument to the command line."""
        self.arguments.append(str(param))

    def _close_stderr(self) -> None:
        if self.stderr is not None:
            self.stderr.close()
        self.stderr = None

    def start(self) -> bool:
        """Start the program in its own session, with stderr piped back."""
        self._close_stderr()
        argv = self.arguments or [self.path]
        try:
            self.process = subprocess.Popen(
                argv,
                executable=self.path,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            log.err("daemon_start(): starting %s failed: %s", self.path, exc)
            raise DaemonError(f"starting {self.path} failed: {exc}") from exc
        self.pid = self.process.pid
        self.stderr = self.process.stderr
        return True

    def stop(self, sleepdelay: int = 0) -> None:
        """Send SIGTERM; after sleepdelay seconds (if non-zero) send SIGKILL."""
        if self.pid is None:
            return
        try:
            os.kill(self.pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
        except OSError:
            return
        if sleepdelay == 0:
            return
        time.sleep(sleepdelay)
        try:
            os.kill(self.pid, getattr(signal, "SIGKILL", signal.SIGTERM))
        except OSError:
            pass

    def sigchld(self, waitbeforerestart: int = 0) -> bool:
        """Reap the exited child, optionally wait, then start it again."""
        if self.process is not None:
            self.process.wait()
        if waitbeforerestart:
            time.sleep(waitbeforerestart)
        return self.start()

    def close(self) -> None:
        """Forget the child and release the stderr pipe."""
        self.pid = None
        self._close_stderr()

    def __enter__(self) -> "Daemon":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()