"""A small HTTP/1.1 GET client for fetching the master configuration."""

from __future__ import annotations

import re
import socket
import sys
from dataclasses import dataclass
from email.utils import formatdate
from typing import Optional

SOCKET_TIMEOUT = 10
DEFAULT_PORT = 80

_SCHEME = "http://"
_LEADING_INT = re.compile(rb"\s*([+-]?[0-9]+)")


class HttpError(Exception):
    """Base class for failures while fetching a URL."""

    code = 1


class InvalidUrlError(HttpError):
    """The URL is not a plain http:// URL that can be handled."""

    code = 5


class NetworkError(HttpError):
    """Name resolution, connecting, sending or receiving failed."""

    code = 3


class ServerError(HttpError):
    """The server answered badly or with a status other than 200."""

    code = 4

    def __init__(self, message: str, status: Optional[int] = None, body: bytes = b"") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass(frozen=True)
class ParsedUrl:
    hostname: str
    port: int
    path: str


def parse_url(url: str) -> ParsedUrl:
    """Split an http:// URL into host name, port and path."""
    if len(url) < len(_SCHEME) or not url.startswith(_SCHEME):
        raise InvalidUrlError(f"not an http URL: {url!r}")

    rest = url[len(_SCHEME):]
    hostname = []
    port_digits = []
    path = "/"
    part = "host"
    for i, char in enumerate(rest):
        if part == "host":
            if char in ":/":
                if not hostname:
                    raise InvalidUrlError(f"missing host name in {url!r}")
                part = "port" if char == ":" else "path"
                if part == "path":
                    path += rest[i + 1:]
                    break
                continue
            hostname.append(char)
        else:
            if char == "/":
                path += rest[i + 1:]
                break
            if not "0" <= char <= "9":
                raise InvalidUrlError(f"invalid port in {url!r}")
            port_digits.append(char)

    port = int("".join(port_digits)) if port_digits else DEFAULT_PORT
    return ParsedUrl("".join(hostname), port, path)


def format_http_date(epoch: float) -> str:
    """Format a Unix time as an HTTP date."""
    return formatdate(epoch, usegmt=True)


def parse_status_line(line) -> int:
    """Return the status code from an HTTP status line."""
    if isinstance(line, str):
        line = line.encode()
    line = bytes(line)
    if len(line) < 4 or b"\0" in line or not line.startswith(b"HTTP"):
        raise ServerError(f"malformed status line {line!r}")
    first = line.find(b" ")
    second = line.find(b" ", first + 1) if first >= 0 else -1
    if second < 0:
        raise ServerError(f"malformed status line {line!r}")
    found = _LEADING_INT.match(line[first:second])
    return int(found.group(1)) if found else 0


def _split_response(raw: bytes) -> tuple[int, bytes]:
    if not raw or raw[0] in b"\r\n":
        raise ServerError("no status line in response")
    line_end = raw.find(b"\n")
    if line_end < 0:
        raise ServerError("incomplete status line in response")
    status_line = raw[:line_end]
    if status_line.endswith(b"\r"):
        status_line = status_line[:-1]
    status = parse_status_line(status_line)

    pos = line_end + 1
    while True:
        if pos >= len(raw):
            raise ServerError("incomplete headers in response", status)
        if raw[pos] in b"\r\n":
            break
        line_end = raw.find(b"\n", pos)
        if line_end < 0:
            raise ServerError("incomplete headers in response", status)
        pos = line_end + 1

    for _ in range(2):
        if pos < len(raw) and raw[pos] in b"\r\n":
            pos += 1
        else:
            break
    return status, raw[pos:]


def _connect(parsed: ParsedUrl) -> socket.socket:
    if not parsed.hostname:
        raise NetworkError("empty host name")
    try:
        infos = socket.getaddrinfo(parsed.hostname, parsed.port,
                                   socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise NetworkError(f"cannot resolve {parsed.hostname}: {exc}") from exc

    last_error: Optional[OSError] = None
    for family, socktype, proto, _canon, address in infos:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        sock.settimeout(SOCKET_TIMEOUT)
        try:
            sock.connect(address)
        except OSError as exc:
            last_error = exc
            sock.close()
            continue
        return sock
    raise NetworkError(f"cannot connect to {parsed.hostname}:{parsed.port}") from last_error


def _build_request(parsed: ParsedUrl, if_modified_since: float, user_agent: str) -> bytes:
    lines = [
        f"GET {parsed.path} HTTP/1.1",
        f"Host: {parsed.hostname}",
        f"User-Agent: {user_agent}",
    ]
    if if_modified_since:
        lines.append(f"If-Modified-Since: {format_http_date(if_modified_since)}")
    lines.append("Connection: close")
    return ("\r\n".join(lines) + "\r\n\r\n").encode()


def http_get(url: str, if_modified_since: float = 0, user_agent: str = "chaosvpn") -> bytes:
    """Fetch a URL and return the response body.

    Raises ServerError (carrying status and body) unless the status is 200.
    """
    parsed = parse_url(url)
    with _connect(parsed) as sock:
        try:
            sock.sendall(_build_request(parsed, if_modified_since, user_agent))
            chunks = []
            while True:
                chunk = sock.recv(8192)
                if not chunk:
                    break
                chunks.append(chunk)
        except OSError as exc:
            raise NetworkError(f"transfer from {parsed.hostname} failed: {exc}") from exc

    status, body = _split_response(b"".join(chunks))
    if status != 200:
        raise ServerError(f"server answered with status {status}", status, body)
    return body


def main(argv=None) -> int:
    """Fetch the URL given on the command line and print the result."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("No URL spec'd")
        return 1
    url = args[0]
    print(url)
    try:
        body = http_get(url, 123, "testclient")
    except ServerError as exc:
        print(f"calling geturl: {exc.code}")
        if exc.status is not None:
            print(f"Err: {exc.status}")
            print(f"Res: {exc.body.decode(errors='replace')}")
        return 0
    except HttpError as exc:
        print(f"calling geturl: {exc.code}")
        return 0
    print("calling geturl: 0")
    print(f"Res: {body.decode(errors='replace')}")
    return 0