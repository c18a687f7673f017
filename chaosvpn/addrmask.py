"""IPv4/IPv6 addresses and subnets with prefix lengths."""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Union


class AddrMaskError(ValueError):
    """Raised when an address or address/mask cannot be parsed."""


class AddressFamily(IntEnum):
    UNSPEC = socket.AF_UNSPEC
    INET = socket.AF_INET
    INET6 = socket.AF_INET6

    @property
    def bit_count(self) -> int:
        return 32 if self is AddressFamily.INET else 128


def _split(text: str) -> tuple[str, Optional[str]]:
    """Split '[addr]/len', '[addr/len]', '[addr]' or 'addr/len' into parts."""
    if text.startswith("["):
        inner, sep, rest = text[1:].partition("]")
        if not sep:
            raise AddrMaskError(f"missing ']' in {text!r}")
        if rest.startswith("/"):
            return inner, rest[1:]
        if rest:
            raise AddrMaskError(f"unexpected text after ']' in {text!r}")
        text = inner
    address, sep, mask = text.partition("/")
    return address, (mask if sep else None)


@dataclass(frozen=True)
class AddrMask:
    """A network address with its prefix length; host bits are always zero."""

    family: AddressFamily
    net: bytes
    mask_shift: int

    @property
    def bit_count(self) -> int:
        return self.family.bit_count

    @property
    def byte_count(self) -> int:
        return self.bit_count // 8

    @property
    def _mask_int(self) -> int:
        bits = self.bit_count
        return ((1 << bits) - 1) ^ ((1 << (bits - self.mask_shift)) - 1)

    @property
    def mask_bytes(self) -> bytes:
        return self._mask_int.to_bytes(self.byte_count, "big")

    @classmethod
    def parse(cls, text: str) -> "AddrMask":
        """Parse 'addr', 'addr/len' or a bracketed form into an AddrMask."""
        if not isinstance(text, str):
            raise AddrMaskError(f"not a string: {text!r}")
        address, mask = _split(text)
        family = AddressFamily.INET6 if ":" in address else AddressFamily.INET
        bits = family.bit_count

        if mask is None:
            shift = bits
        else:
            if not (mask.isascii() and mask.isdigit()):
                raise AddrMaskError(f"invalid mask in {text!r}")
            shift = int(mask)
            if shift > bits:
                raise AddrMaskError(f"mask too long in {text!r}")

        try:
            if family is AddressFamily.INET:
                addr = ipaddress.IPv4Address(address)
            else:
                addr = ipaddress.IPv6Address(address)
        except ValueError as exc:
            raise AddrMaskError(f"invalid address in {text!r}") from exc

        mask_int = ((1 << bits) - 1) ^ ((1 << (bits - shift)) - 1)
        net = (int(addr) & mask_int).to_bytes(bits // 8, "big")
        return cls(family, net, shift)

    def _contains_address(self, other: "AddrMask") -> bool:
        if other.family != self.family:
            return False
        other_int = int.from_bytes(other.net, "big")
        return (other_int & self._mask_int) == int.from_bytes(self.net, "big")

    def matches(self, other: Union[str, "AddrMask"]) -> bool:
        """True if other (an address or subnet) lies within this subnet."""
        if isinstance(other, str):
            try:
                other = AddrMask.parse(other)
            except AddrMaskError:
                return False
        return self._contains_address(other) and other.mask_shift >= self.mask_shift

    def __str__(self) -> str:
        addr = ipaddress.ip_address(self.net)
        if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
            text = f"::ffff:{addr.ipv4_mapped}"
        else:
            text = str(addr)
        return f"{text}/{self.mask_shift}"


def parse(text: str) -> AddrMask:
    """Parse an address or address/mask string."""
    return AddrMask.parse(text)


def match(entries: Iterable[AddrMask], addr: Union[str, AddrMask]) -> Optional[AddrMask]:
    """Return the entry that addr falls into, or None.

    The first entry whose network contains the address decides: if the
    given subnet is larger than that entry, there is no match.
    """
    if not addr:
        return None
    if isinstance(addr, str):
        try:
            info = AddrMask.parse(addr)
        except AddrMaskError:
            return None
    else:
        info = addr

    for entry in entries:
        if entry._contains_address(info):
            return entry if info.mask_shift >= entry.mask_shift else None
    return None


def _family_ok(parsed: AddrMask, family: int) -> bool:
    family = int(family)
    if family == AddressFamily.UNSPEC:
        return True
    return family == parsed.family


def verify_subnet(text: Optional[str], family: int) -> bool:
    """True if text is an address or subnet of the given family."""
    if not text:
        return False
    try:
        parsed = AddrMask.parse(text)
    except AddrMaskError:
        return False
    return _family_ok(parsed, family)


def verify_ip(text: Optional[str], family: int) -> bool:
    """True if text is a single host address of the given family."""
    if not text:
        return False
    try:
        parsed = AddrMask.parse(text)
    except AddrMaskError:
        return False
    if parsed.mask_shift != parsed.bit_count:
        return False
    return _family_ok(parsed, family)