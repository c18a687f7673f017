"""Minimal reading of ar archives held in memory."""

from __future__ import annotations

import re
import struct
from typing import Optional, Union

from . import log

ARMAG = b"!<arch>\n"
SARMAG = 8
ARFMAG = b"`\n"

# name, date, uid, gid, mode, size, fmag
_HEADER = struct.Struct("16s12s6s6s8s10s2s")

_NUMBER = re.compile(rb"[+-]?[0-9]+")


class ArError(ValueError):
    """Raised when an archive is malformed."""


def _first_word(field: bytes, what: str) -> bytes:
    if b"\0" in field:
        raise ArError(f"{what} contains zero-bytes")
    return field.split(b" ", 1)[0]


def _parse_length(field: bytes) -> int:
    digits = _first_word(field, "length field")
    if not digits:
        return 0
    if not _NUMBER.fullmatch(digits):
        raise ArError("buffer corrupt - invalid length field in header")
    value = int(digits)
    if value < 0:
        raise ArError("buffer corrupt - negative member length")
    return value


def _name_matches(field: bytes, wanted: bytes) -> bool:
    name = _first_word(field, "header name")
    if name.endswith(b"/"):
        name = name[:-1]
    return name == wanted


def is_ar_file(archive: bytes) -> bool:
    """True if the buffer starts with the ar magic string."""
    if len(archive) < SARMAG:
        log.warn("ar_extract: buffer contents too short")
        return False
    if not bytes(archive[:SARMAG]) == ARMAG:
        log.warn("ar_extract: no .ar header at the beginning")
        return False
    return True


def extract(archive: bytes, member_name: Union[str, bytes]) -> Optional[bytes]:
    """Return the contents of the named member, or None if it is absent.

    Raises ArError if the archive is malformed.
    """
    data = bytes(archive)
    wanted = member_name.encode() if isinstance(member_name, str) else bytes(member_name)

    if len(data) < SARMAG:
        raise ArError("buffer contents too short")
    if not data.startswith(ARMAG):
        raise ArError("no .ar header at the beginning")

    pos = SARMAG
    while True:
        if len(data) - pos < _HEADER.size:
            raise ArError("buffer contents too short")
        name, _date, _uid, _gid, _mode, size, fmag = _HEADER.unpack_from(data, pos)
        pos += _HEADER.size

        if fmag != ARFMAG:
            raise ArError("buffer corrupt - bad magic at end of header")

        length = _parse_length(size)
        padded = length + (length & 1)
        if padded > len(data) - pos:
            raise ArError("buffer corrupt - header length bigger than rest of buffer")

        if _name_matches(name, wanted):
            return data[pos:pos + length]

        pos += padded
        if pos == len(data):
            return None