# chaosvpn

Building blocks for a client that sets up a tinc VPN node from centrally
distributed, signed configuration data.

## Modules

- `chaosvpn.addrmask` – IPv4/IPv6 addresses and subnets.
  `AddrMask.parse` (or `parse`) accepts `addr`, `addr/len`, `[addr]`,
  `[addr]/len` and `[addr/len]`; host bits are cleared. `AddrMask.matches`
  tells whether an address or smaller subnet lies inside a subnet, and
  `str()` gives `addr/len` back. `match(entries, addr)` returns the first
  entry whose network contains the address, or `None` (also when the given
  subnet is larger than that entry). `verify_ip` and `verify_subnet` check
  text against an `AddressFamily` (`UNSPEC` accepts both). Parse failures
  raise `AddrMaskError`.
- `chaosvpn.ar` – `is_ar_file` checks for the `ar` magic string;
  `extract(archive, member_name)` returns a member's bytes, `None` if it is
  not there, and raises `ArError` on a malformed archive.
- `chaosvpn.crypto` – `load_key` reads PEM private or public keys;
  `rsa_verify_signature` checks a SHA-512 signature (RSA PKCS#1 v1.5, or
  ECDSA for EC keys) and returns `True` or `False`; `rsa_decrypt` decrypts
  one RSA-OAEP (SHA-1) block; `aes_decrypt` decrypts AES-256-CBC with PKCS#7
  padding. Bad keys, sizes or data raise `CryptoError`.
- `chaosvpn.daemon` – `daemonize()` detaches the current process with a
  double fork. `Daemon(path, *args)` runs a program in its own session with
  its stderr piped back: `add_param`, `start`, `stop(sleepdelay)` (SIGTERM,
  then SIGKILL after the delay if it is non-zero), `sigchld(waitbeforerestart)`
  to reap and restart, and `close`; it is also a context manager. Start
  failures raise `DaemonError`.
- `chaosvpn.fs` – `mkdir_p`, `get_cwd` (with trailing slash), `cp_r`
  (directories and regular files, keeping modes and timestamps),
  `empty_dir` (removes regular files, returns how many), `write_contents`,
  `write_contents_safe` (replaces `/` in the file name with `_`, returns the
  path), `read_file`, `read_stream` and `backticks_exec` (runs a shell
  command, returns its stdout).
- `chaosvpn.httpclient` – a plain-HTTP GET client. `parse_url` gives a
  `ParsedUrl` (host name, port, path); `http_get(url, if_modified_since,
  user_agent)` returns the body of a 200 answer. Errors are `HttpError`
  subclasses: `InvalidUrlError`, `NetworkError`, and `ServerError`, which
  carries `status` and `body`. `format_http_date` and `parse_status_line`
  are available on their own.
- `chaosvpn.config` – `Config`, a dataclass holding every setting with its
  default. `validate()` checks required settings, addresses, the update
  interval and the tincd user, and parses the subnet lists; `apply_defaults()`
  fills in device, interface, pid file, temporary file and the `tinc`
  control program path; `load_keys()` creates the base directory and reads
  `rsa_key.priv` (required) and `ed25519_key.pub` (optional).
  `parse_subnet_list` turns a list of strings into `AddrMask` entries,
  skipping invalid ones. Problems raise `ConfigError`.
- `chaosvpn.log` – `log_init` opens syslog; `log_raw`, `err`, `warn`,
  `note`, `info` and `debug` write a line with a priority prefix to stderr
  (errors and warnings) or stdout, and to syslog once it is open.

## Example

```python
from chaosvpn import addrmask

nets = [addrmask.parse("172.31.0.0/16"), addrmask.parse("fd00::/8")]
entry = addrmask.match(nets, "172.31.4.0/24")
print(entry)  # 172.31.0.0/16
```

```python
from chaosvpn import ar

with open("bundle.ar", "rb") as fh:
    data = fh.read()
if ar.is_ar_file(data):
    config_text = ar.extract(data, "config.txt")
```

## Command line

```
chaosvpn-fetch http://example.com/
```

Prints the URL, a `calling geturl:` line with 0 or the error code, and the
response body (`Res:`). For a non-200 answer it also prints the status
(`Err:`). Only `http://` URLs are supported.

## What this package does not do

There is no program that runs a VPN node end to end. The package does not
read the settings file: a `Config` has to be filled in by the caller. It
does not write tinc configuration, host files or up/down scripts, does not
parse the peer list from the master data, and does not create the tun
device.

## Installation and tests

```
pip install .
pip install .[test]
pytest
```