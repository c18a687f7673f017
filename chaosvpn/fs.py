"""File system helpers: directories, whole-file reads and writes, shell commands."""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
from typing import IO, Union

from . import log

Content = Union[str, bytes, bytearray, memoryview]

_COPY_CHUNK = 65536


def _as_bytes(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode()
    return bytes(content)


def mkdir_p(path, mode: int = 0o777) -> None:
    """Create a directory and any missing parents.

    Raises OSError on failure, including FileExistsError if the directory
    itself already exists.
    """
    path = os.fspath(path)
    try:
        os.mkdir(path, mode)
    except FileNotFoundError:
        pos = path.rfind("/")
        if pos <= 0:
            raise
        mkdir_p(path[:pos], mode)
        os.mkdir(path, mode)


def get_cwd() -> str:
    """Return the current working directory with a trailing slash."""
    cwd = os.getcwd()
    return cwd if cwd.endswith("/") else cwd + "/"


def _absolute(path) -> str:
    path = os.fspath(path)
    return path if path.startswith("/") else get_cwd() + path


def _set_times(path: str, st: os.stat_result) -> None:
    try:
        os.utime(path, (int(st.st_atime), int(st.st_mtime)))
    except OSError:
        log.warn("fs_cp_r: warning: utimes failed for %s", path)


def _copy_file(src: str, dst: str, st: os.stat_result) -> None:
    fd = os.open(dst, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, stat.S_IMODE(st.st_mode))
    with open(src, "rb") as source, os.fdopen(fd, "wb") as target:
        shutil.copyfileobj(source, target, _COPY_CHUNK)


def _copy_dir(src: str, dst: str) -> None:
    try:
        st = os.stat(src)
    except OSError as exc:
        log.warn("fs_cp_r: stat(%s) failed: %s", src, exc.strerror)
        raise
    try:
        os.mkdir(dst, stat.S_IMODE(st.st_mode))
    except OSError:
        pass

    with os.scandir(src) as entries:
        for entry in entries:
            try:
                entry_stat = entry.stat()
            except OSError:
                continue
            source = os.path.join(src, entry.name)
            target = os.path.join(dst, entry.name)
            if stat.S_ISDIR(entry_stat.st_mode):
                _copy_dir(source, target)
                _set_times(target, entry_stat)
            elif stat.S_ISREG(entry_stat.st_mode):
                try:
                    _copy_file(source, target, entry_stat)
                except OSError as exc:
                    log.warn("fs_cp_r: copy %s to %s failed: %s", source, target, exc.strerror)
                    raise
                _set_times(target, entry_stat)


def cp_r(src, dest) -> None:
    """Copy a directory tree, keeping modes and timestamps of its entries.

    Only directories and regular files are copied. Raises OSError on failure.
    """
    _copy_dir(_absolute(src), _absolute(dest))


def empty_dir(dest) -> int:
    """Remove every regular file directly inside a directory.

    Subdirectories are left alone. A missing directory is not an error.
    Returns the number of files removed.
    """
    path = _absolute(dest)
    try:
        st = os.stat(path)
    except OSError:
        return 0
    if not stat.S_ISDIR(st.st_mode):
        raise NotADirectoryError(f"not a directory: {path}")

    removed = 0
    with os.scandir(path) as entries:
        for entry in entries:
            try:
                entry_stat = entry.stat()
            except OSError:
                continue
            if not stat.S_ISREG(entry_stat.st_mode):
                continue
            target = os.path.join(path, entry.name)
            try:
                os.unlink(target)
            except OSError as exc:
                log.err("fs_empty_dir: failed to unlink %s: %s", target, exc.strerror)
            else:
                removed += 1
    return removed


def write_contents(fn, content: Content, mode: int = 0o666) -> None:
    """Create or truncate a file and write content into it."""
    data = _as_bytes(content)
    fd = os.open(os.fspath(fn), os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def write_contents_safe(directory, fn: str, content: Content, mode: int = 0o666) -> str:
    """Write content to a file in directory, replacing '/' in the name with '_'.

    Returns the path written.
    """
    path = f"{os.fspath(directory)}/{fn.replace('/', '_')}"
    write_contents(path, content, mode)
    return path


def read_file(fname) -> bytes:
    """Return the whole contents of a file."""
    with open(os.fspath(fname), "rb") as handle:
        return handle.read()


def read_stream(stream: IO) -> bytes:
    """Read everything left in an open stream."""
    data = stream.read()
    return _as_bytes(data) if data is not None else b""


def backticks_exec(cmd: str) -> bytes:
    """Run a shell command and return what it wrote to stdout."""
    try:
        result = subprocess.run(cmd, shell=True, stdout=subprocess.PIPE, check=False)
    except OSError:
        log.err("fs_backticks_exec: pipe() failed")
        raise
    return result.stdout