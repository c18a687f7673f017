import pytest

from chaosvpn.addrmask import (
    AddrMask,
    AddrMaskError,
    AddressFamily,
    match,
    parse,
    verify_ip,
    verify_subnet,
)


@pytest.mark.parametrize("text", ["10.0.0.0/8", "172.16.0.0/12", "fd00::/8", "2001:db8::1/128"])
def test_round_trip(text):
    assert str(parse(text)) == text


def test_bare_address_gets_full_mask():
    v4 = parse("192.168.1.1")
    v6 = parse("::1")
    assert v4.mask_shift == 32
    assert v4.family is AddressFamily.INET
    assert v6.mask_shift == 128
    assert v6.family is AddressFamily.INET6
    assert str(v4) == "192.168.1.1/32"


def test_host_bits_are_cleared():
    assert str(parse("10.1.2.3/8")) == "10.0.0.0/8"


def test_mask_bytes():
    assert parse("10.0.0.0/16").mask_bytes == b"\xff\xff\x00\x00"
    assert parse("10.0.0.0/0").mask_bytes == bytes(4)


@pytest.mark.parametrize("text", ["[fd00::]/8", "[fd00::/8]"])
def test_brackets(text):
    assert parse(text) == parse("fd00::/8")


def test_bracket_without_mask():
    assert parse("[::1]") == parse("::1")


@pytest.mark.parametrize(
    "text",
    ["10.0.0.0/33", "fd00::/129", "10.0.0.0/x", "10.0.0.0/", "[fd00::", "[::1]x", "garbage", ""],
)
def test_invalid(text):
    with pytest.raises(AddrMaskError):
        parse(text)


def test_match_finds_entry():
    entries = [parse("10.0.0.0/8"), parse("172.16.0.0/12")]
    assert match(entries, "172.16.5.1") is entries[1]
    assert match(entries, "10.20.0.0/16") is entries[0]


def test_match_no_entry():
    entries = [parse("10.0.0.0/8")]
    assert match(entries, "192.168.0.1") is None
    assert match(entries, "not an address") is None
    assert match(entries, "fd00::1") is None


def test_match_rejects_larger_subnet():
    entries = [parse("10.0.0.0/8")]
    assert match(entries, "10.0.0.0/4") is None


def test_matches_method():
    net = parse("fd00::/8")
    assert net.matches("fd12:3456::1")
    assert not net.matches("fe80::1")
    assert not net.matches(parse("fd00::/7"))


def test_verify_ip():
    assert verify_ip("10.0.0.1", AddressFamily.INET)
    assert verify_ip("10.0.0.1", AddressFamily.UNSPEC)
    assert not verify_ip("10.0.0.1", AddressFamily.INET6)
    assert verify_ip("fd00::1", AddressFamily.INET6)
    assert not verify_ip("10.0.0.0/24", AddressFamily.INET)
    assert not verify_ip("", AddressFamily.UNSPEC)
    assert not verify_ip(None, AddressFamily.UNSPEC)


def test_verify_subnet():
    assert verify_subnet("10.0.0.0/24", AddressFamily.INET)
    assert verify_subnet("10.0.0.1", AddressFamily.UNSPEC)
    assert not verify_subnet("10.0.0.0/24", AddressFamily.INET6)
    assert not verify_subnet("bogus/24", AddressFamily.UNSPEC)
    assert not verify_subnet("", AddressFamily.INET)


def test_parse_classmethod_equals_function():
    assert AddrMask.parse("10.0.0.0/8") == parse("10.0.0.0/8")