"""Decoding of raw blob/worktree bytes into diff lines."""

from __future__ import annotations

from ..highlight import sanitize_terminal_text

BINARY_SNIFF_BYTES = 8000


def decode_text(data: bytes) -> str:
    """Decode bytes using tolerant encoding fallback order.

    Attempts UTF-8 (dropping a leading BOM), then latin-1, which always succeeds.
    """
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def looks_binary(data: bytes) -> bool:
    """Return whether content looks binary using git's NUL-byte heuristic."""
    return b"\0" in data[:BINARY_SNIFF_BYTES]


def split_lines(data: bytes) -> list[str]:
    """Decode content and split it on ``\\n`` the way git numbers lines.

    A ``\\r`` before the newline stays part of the line, so CRLF and LF
    versions of a line compare unequal. Other separators such as U+2028 or a
    lone ``\\r`` are ordinary characters.
    """
    if not data:
        return []
    lines = sanitize_terminal_text(decode_text(data)).split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def display_text(line: str) -> str:
    """Drop a line's CR terminator and escape any other carriage return."""
    if line.endswith("\r"):
        line = line[:-1]
    return line.replace("\r", "\\x0d")


__all__ = ["BINARY_SNIFF_BYTES", "decode_text", "display_text", "looks_binary", "split_lines"]
