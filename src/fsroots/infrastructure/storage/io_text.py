"""Text file utilities for fsroots."""

from __future__ import annotations

import os
import tempfile


def write_text_atomic(path: str, text: str, *, fsync: bool = True) -> int:
    """Write text atomically (temp file in the same directory + replace).

    Returns the number of bytes written. An existing file keeps its
    permission bits.
    """
    payload = (text or "").encode("utf-8")
    directory = os.path.dirname(path) or "."
    try:
        mode = os.stat(path).st_mode & 0o7777
    except FileNotFoundError:
        mode = None

    fd, tmp_path = tempfile.mkstemp(prefix=".fsroots-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            if fsync:
                os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        else:
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(tmp_path, 0o666 & ~umask)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    return len(payload)


def decode_text_bytes(data: bytes) -> str:
    """Decode bytes to text with fallback encodings."""
    if not data:
        return ""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    text = data.decode("utf-8", errors="replace")
    bad = text.count("\ufffd")
    if bad / max(len(text), 1) < 0.02:
        return text
    for enc in ("utf-8-sig", "latin-1"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return text


def read_text(path: str) -> str:
    """Read a whole file as text.

    Unlike a best-effort reader this propagates OSError so callers can
    report not-found and permission failures.
    """
    with open(path, "rb") as handle:
        data = handle.read()
    return decode_text_bytes(data)


def read_text_strict(path: str) -> str:
    """Read a whole file as UTF-8, failing on undecodable bytes.

    Used where the text is written back, so a lossy decode would corrupt
    bytes the caller never touched.

    Raises:
        OSError: the file cannot be read.
        UnicodeDecodeError: the content is not valid UTF-8.
    """
    with open(path, "rb") as handle:
        return handle.read().decode("utf-8")
