"""Logging to syslog and to the console, with a priority prefix."""

from __future__ import annotations

import os
import sys
from enum import IntEnum

try:
    import syslog as _syslog
except ImportError:  # pragma: no cover - platforms without syslog
    _syslog = None


class Priority(IntEnum):
    """Syslog priorities."""

    EMERG = 0
    ALERT = 1
    CRIT = 2
    ERR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


# prefix and whether the message goes to stderr
_OUTPUTS = {
    Priority.EMERG: ("<EMERG>", True),
    Priority.ALERT: ("<ALERT>", True),
    Priority.ERR: ("<ERR>  ", True),
    Priority.WARNING: ("<WARN> ", True),
    Priority.NOTICE: ("<NOTE> ", False),
    Priority.INFO: ("<INFO> ", False),
    Priority.DEBUG: ("<DEBUG>", False),
}
_DEFAULT_OUTPUT = ("<INFO> ", False)

_syslog_open = False


def log_init(argv, logopt=0, logfac=None):
    """Open the syslog connection, named after the program in argv[0]."""
    global _syslog_open
    if _syslog is None:
        return
    progname = os.path.basename(argv[0]) if argv else "chaosvpn"
    if logfac is None:
        logfac = _syslog.LOG_DAEMON
    _syslog.openlog(progname, logopt, logfac)
    _syslog_open = True


def log_raw(priority, fmt, *args):
    """Log a printf-style message at the given priority."""
    message = fmt % args if args else fmt

    if _syslog is not None and _syslog_open:
        _syslog.syslog(int(priority), message)

    prefix, to_stderr = _OUTPUTS.get(priority, _DEFAULT_OUTPUT)
    out = sys.stderr if to_stderr else sys.stdout
    out.write(f"{prefix} {message}")
    if not fmt.endswith("\n"):
        out.write("\n")
    out.flush()


def err(fmt, *args):
    """Log at error priority."""
    log_raw(Priority.ERR, fmt, *args)


def warn(fmt, *args):
    """Log at warning priority."""
    log_raw(Priority.WARNING, fmt, *args)


def note(fmt, *args):
    """Log at notice priority."""
    log_raw(Priority.NOTICE, fmt, *args)


def info(fmt, *args):
    """Log at info priority."""
    log_raw(Priority.INFO, fmt, *args)


def debug(fmt, *args):
    """Log at debug priority."""
    log_raw(Priority.DEBUG, fmt, *args)