"""Program settings: defaults, validation and derived values."""

from __future__ import annotations

import os
import re
import stat
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from . import fs, log
from .addrmask import AddrMask, AddrMaskError, AddressFamily, verify_ip

try:
    import pwd as _pwd
except ImportError:  # pragma: no cover - platforms without a user database
    _pwd = None

DEFAULT_MASTER_URL = "https://vpn.example.com/tinc-chaosvpn.txt"
PLACEHOLDER_VPN_IP = "172.31.0.255"
UNSET_MY_IPS = ("0.0.0.0", "127.0.0.1", "::")
ADDRESS_FAMILIES = ("any", "ipv4", "ipv6")

_BSD_PLATFORMS = ("freebsd", "openbsd", "netbsd", "darwin")
_CHUNK = re.compile(r"\d+|\D+")


def _is_bsd() -> bool:
    return sys.platform.startswith(_BSD_PLATFORMS)


def _default_tincdir() -> str:
    return "/usr/local/etc/tinc" if _is_bsd() else "/etc/tinc"


def _natural_compare(a: str, b: str) -> int:
    """Compare two strings, ordering runs of digits by their numeric value."""

    def chunks(text: str):
        return [(0, int(part), "") if part.isdigit() else (1, 0, part)
                for part in _CHUNK.findall(text)]

    left, right = chunks(a), chunks(b)
    if left == right:
        return 0
    return -1 if left < right else 1


class ConfigError(ValueError):
    """Raised when the settings are incomplete or inconsistent."""


def parse_subnet_list(raw: Optional[Iterable[Any]], label: str) -> List[AddrMask]:
    """Parse a list of address/mask strings, skipping invalid entries.

    Entries that are not strings are ignored silently; strings that do not
    parse are reported and ignored.
    """
    result: List[AddrMask] = []
    if not raw:
        return result
    for entry in raw:
        if not isinstance(entry, str):
            continue
        try:
            result.append(AddrMask.parse(entry))
        except AddrMaskError:
            log.err("%s: invalid ip/mask '%s' - ignored.", label, entry)
    return result


@dataclass
class Config:
    """All settings of the program, with the built-in defaults."""

    pidfile: Optional[str] = None
    peerid: Optional[str] = None
    vpn_ip: Optional[str] = None
    vpn_ip6: Optional[str] = None
    networkname: Optional[str] = None
    my_ip: Optional[str] = None
    my_addressfamily: Optional[str] = None
    tincd_bin: Optional[str] = "tincd"
    tincd_version: Optional[str] = None
    tincctl_bin: Optional[str] = None
    tincd_debuglevel: int = 3
    tincd_restart_delay: int = 20
    routemetric: Optional[str] = "0"
    routeadd: Optional[str] = None
    routeadd6: Optional[str] = None
    routedel: Optional[str] = None
    routedel6: Optional[str] = None
    postup: Optional[str] = None
    ifconfig: Optional[str] = None
    ifconfig6: Optional[str] = None
    master_url: Optional[str] = DEFAULT_MASTER_URL
    base_path: Optional[str] = None
    tincd_pidfile: Optional[str] = None
    masterdata_signkey: Optional[str] = None
    tincd_graphdumpfile: Optional[str] = None
    tmpconffile: Optional[str] = None
    tincd_device: Optional[str] = None
    tincd_interface: Optional[str] = None
    tincd_user: Optional[str] = None
    tincd_raw_config: Optional[str] = None
    privkey: bytes = b""
    ed25519publickey: bytes = b""
    exclude: List[Any] = field(default_factory=list)
    my_peer: Any = None
    peer_config: List[Any] = field(default_factory=list)
    ifmodifiedsince: int = 0
    update_interval: int = 0
    use_dynamic_routes: bool = False
    connect_only_to_primary_nodes: bool = True
    run_ifdown: bool = False
    localdiscovery: bool = True
    mergeroutes_supernet_raw: List[Any] = field(default_factory=list)
    mergeroutes_supernet: List[AddrMask] = field(default_factory=list)
    ignore_subnets_raw: List[Any] = field(default_factory=list)
    ignore_subnets: List[AddrMask] = field(default_factory=list)
    whitelist_subnets_raw: List[Any] = field(default_factory=list)
    whitelist_subnets: List[AddrMask] = field(default_factory=list)
    password: Optional[str] = None
    vpn_netmask: Optional[str] = None
    configfile: str = field(default_factory=lambda: _default_tincdir() + "/chaosvpn.conf")
    daemonmode: bool = False
    oneshot: bool = False
    tincd_uid: int = 0
    tincd_gid: int = 0

    def _require(self, attribute: str, label: str) -> None:
        if not getattr(self, attribute):
            raise ConfigError(f"{label} is missing or empty in {self.configfile}")

    def _parse_subnets(self, name: str, label: str) -> None:
        raw_name = name + "_raw"
        parsed = parse_subnet_list(getattr(self, raw_name), label)
        setattr(self, name, parsed)
        setattr(self, raw_name, [])
        if parsed and self.use_dynamic_routes:
            raise ConfigError(
                f"settings {label} and $use_dynamic_routes are not compatible! "
                "disable one of them and retry.")

    def validate(self) -> None:
        """Check the settings and normalise them; raises ConfigError."""
        if not self.oneshot:
            if self.update_interval == 0:
                raise ConfigError(
                    "you have not configured a remote config update interval "
                    "($update_interval). Please configure an interval (3600 - 7200 "
                    "seconds are recommended) or activate legacy (cron) mode by "
                    "using the -o flag.")
            if self.update_interval < 60:
                raise ConfigError("$update_interval may not be <60.")

        for attribute, label in (
            ("peerid", "$my_peerid"),
            ("networkname", "$networkname"),
            ("vpn_ip", "$my_vpn_ip"),
            ("routeadd", "$routeadd"),
            ("ifconfig", "$ifconfig"),
            ("base_path", "$base"),
            ("tincd_user", "$tincd_user"),
            ("tincd_bin", "$tincd_bin"),
        ):
            self._require(attribute, label)

        if "/" in self.tincd_bin:
            # only check the exec bit when a full path has been given
            try:
                mode = os.stat(self.tincd_bin).st_mode
            except OSError:
                mode = 0
            if not mode & stat.S_IXUSR:
                raise ConfigError(
                    f"tinc binary '{self.tincd_bin}' missing or not executable.")

        if not self.my_ip or self.my_ip in UNSET_MY_IPS:
            self.my_ip = None
        if self.my_ip and not verify_ip(self.my_ip, AddressFamily.UNSPEC):
            raise ConfigError("no valid ip address found in $my_ip")

        if self.my_addressfamily and self.my_addressfamily not in ADDRESS_FAMILIES:
            raise ConfigError(
                "invalid setting for $my_addressfamily, only 'ipv4', 'ipv6' or 'any' allowed.")
        if not self.my_addressfamily:
            self.my_addressfamily = "ipv4"

        if _pwd is not None:
            try:
                entry = _pwd.getpwnam(self.tincd_user)
            except KeyError as exc:
                raise ConfigError(f"tincd_user {self.tincd_user} does not exist.") from exc
            self.tincd_uid = entry.pw_uid
            self.tincd_gid = entry.pw_gid

        if not verify_ip(self.vpn_ip, AddressFamily.INET):
            raise ConfigError("no valid ipv4 address found in $my_vpn_ip")
        if self.vpn_ip == PLACEHOLDER_VPN_IP:
            raise ConfigError(f"you have to change $my_vpn_ip in {self.configfile}")

        if self.vpn_ip6 and not verify_ip(self.vpn_ip6, AddressFamily.INET6):
            raise ConfigError("no valid ipv6 address found in $my_vpn_ip6")

        if self.use_dynamic_routes:
            self._require("routedel", "$routedel")
        if self.vpn_ip6:
            self._require("ifconfig6", "$ifconfig6")
            self._require("routeadd6", "$routeadd6")
            if self.use_dynamic_routes:
                self._require("routedel6", "$routedel6")

        self._parse_subnets("mergeroutes_supernet", "@mergeroutes_supernet")
        self._parse_subnets("ignore_subnets", "@ignore_subnets")
        self._parse_subnets("whitelist_subnets", "@whitelist_subnets")

    def apply_defaults(self) -> None:
        """Fill in the settings derived from others when they were not given."""
        if _is_bsd():
            if self.tincd_interface and not self.tincd_device:
                self.tincd_device = f"/dev/{self.tincd_interface}"
        else:
            if not self.tincd_device:
                self.tincd_device = "/dev/net/tun"
            if not self.tincd_interface:
                self.tincd_interface = f"{self.networkname}_vpn"

        # the tinc control program only exists since tinc 1.1
        if self.tincd_version and _natural_compare(self.tincd_version, "1.1") > 0:
            if self.tincctl_bin is None:
                directory, slash, _ = (self.tincd_bin or "").rpartition("/")
                self.tincctl_bin = f"{directory}{slash}tinc"
        else:
            self.tincctl_bin = None

        if self.tincd_pidfile is None:
            self.tincd_pidfile = f"/var/run/tinc.{self.networkname}.pid"
        if self.tmpconffile is None:
            self.tmpconffile = f"{self.base_path}/data.sav"

    def load_keys(self) -> None:
        """Create the base directory and read the key files kept in it."""
        if not os.path.exists(self.base_path):
            try:
                fs.mkdir_p(self.base_path, 0o700)
            except OSError as exc:
                raise ConfigError(f"unable to mkdir {self.base_path}") from exc

        key_name = f"{self.base_path}/rsa_key.priv"
        try:
            self.privkey = fs.read_file(key_name)
        except OSError as exc:
            raise ConfigError(f"can't read private rsa key at {key_name}") from exc

        # a missing public ed25519 key is normal for older setups
        try:
            self.ed25519publickey = fs.read_file(f"{self.base_path}/ed25519_key.pub")
        except OSError:
            self.ed25519publickey = b""