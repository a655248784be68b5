"""Per-line syntax classification for diff rows.

Maps a path to a Pygments-backed classifier by file extension and splits one
line of text into ``(span_text, style_tag)`` pairs. Unknown extensions degrade
to a plain-text classifier; nothing here raises for unsupported input.
Also neutralizes terminal control bytes so diff content cannot drive the tty.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePosixPath

from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name, get_lexer_for_filename, guess_lexer
from pygments.styles import get_style_by_name
from pygments.token import Token, string_to_tokentype
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"
PLAIN_STYLE_TAG = "Token.Text"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_LEXER_OPTIONS = {"stripnl": False, "ensurenl": False, "stripall": False}

_REGISTRY_LOCK = threading.Lock()
_CLASSIFIER_FACTORIES: dict[str, Callable[[], Lexer]] = {}


@dataclass(frozen=True)
class Classifier:
    """Token classifier for one language; ``lexer=None`` means plain text."""

    name: str
    lexer: Lexer | None = None

    @property
    def is_plain(self) -> bool:
        return self.lexer is None


PLAIN_TEXT_CLASSIFIER = Classifier(name="text")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def _extension_key(path: str) -> str:
    """Return lowercase extension without dot, or the bare name for dotless files."""
    name = PurePosixPath(path).name
    suffix = PurePosixPath(name).suffix
    if suffix:
        return suffix[1:].lower()
    return name.lower()


def register_classifier(extension: str, lexer_name: str) -> None:
    """Route ``extension`` (without dot) to the Pygments lexer alias ``lexer_name``."""
    key = extension.lstrip(".").lower()

    def factory() -> Lexer:
        return get_lexer_by_name(lexer_name, **_LEXER_OPTIONS)

    with _REGISTRY_LOCK:
        _CLASSIFIER_FACTORIES[key] = factory
    _classifier_for_key.cache_clear()


@lru_cache(maxsize=256)
def _classifier_for_key(key: str, filename: str) -> Classifier:
    with _REGISTRY_LOCK:
        factory = _CLASSIFIER_FACTORIES.get(key)
    try:
        if factory is not None:
            lexer = factory()
        else:
            lexer = get_lexer_for_filename(filename, **_LEXER_OPTIONS)
    except ClassNotFound:
        return PLAIN_TEXT_CLASSIFIER
    if isinstance(lexer, TextLexer):
        return PLAIN_TEXT_CLASSIFIER
    return Classifier(name=lexer.name, lexer=lexer)


@lru_cache(maxsize=64)
def _classifier_for_shebang(line: str) -> Classifier:
    try:
        lexer = guess_lexer(line, **_LEXER_OPTIONS)
    except ClassNotFound:
        return PLAIN_TEXT_CLASSIFIER
    if isinstance(lexer, TextLexer):
        return PLAIN_TEXT_CLASSIFIER
    return Classifier(name=lexer.name, lexer=lexer)


def classify(path: str, first_line: str | None = None) -> Classifier:
    """Return the classifier for ``path``; unknown types fall back to plain text.

    When the path alone says nothing and ``first_line`` is a ``#!`` line, the
    interpreter named there picks the lexer.
    """
    key = _extension_key(path)
    # Lexer lookup only depends on the extension, so the filename is normalized
    # to keep the cache keyed by extension.
    suffix = PurePosixPath(path).suffix
    filename = f"file.{key}" if suffix else PurePosixPath(path).name
    classifier = _classifier_for_key(key, filename)
    if classifier.is_plain and first_line and first_line.startswith("#!"):
        return _classifier_for_shebang(first_line.strip())
    return classifier


def highlight(classifier: Classifier, line_text: str) -> list[tuple[str, str]]:
    """Split one line into ``(span_text, style_tag)`` pairs.

    Adjacent tokens sharing a style are merged. Lexer failures degrade to a
    single unstyled span.
    """
    if not line_text:
        return []
    if classifier.lexer is None:
        return [(line_text, PLAIN_STYLE_TAG)]

    spans: list[tuple[str, str]] = []
    try:
        for token_type, value in classifier.lexer.get_tokens(line_text):
            if not value:
                continue
            tag = str(token_type)
            if spans and spans[-1][1] == tag:
                spans[-1] = (spans[-1][0] + value, tag)
            else:
                spans.append((value, tag))
    except Exception:
        return [(line_text, PLAIN_STYLE_TAG)]

    if "".join(text for text, _tag in spans) != line_text:
        return [(line_text, PLAIN_STYLE_TAG)]
    return spans


@lru_cache(maxsize=16)
def _style_class(style_name: str):
    try:
        return get_style_by_name(style_name)
    except ClassNotFound:
        return get_style_by_name(DEFAULT_STYLE)


@lru_cache(maxsize=1024)
def style_sgr(style_tag: str, style_name: str = DEFAULT_STYLE) -> str:
    """Return the SGR escape for ``style_tag`` under Pygments style ``style_name``.

    Returns an empty string when the style leaves the token uncolored.
    """
    token_type = string_to_tokentype(style_tag) if style_tag else Token.Text
    try:
        token_style = _style_class(style_name).style_for_token(token_type)
    except KeyError:
        return ""

    params: list[str] = []
    if token_style.get("bold"):
        params.append("1")
    if token_style.get("italic"):
        params.append("3")
    color = token_style.get("color")
    if color and len(color) == 6:
        red = int(color[0:2], 16)
        green = int(color[2:4], 16)
        blue = int(color[4:6], 16)
        params.extend(["38", "2", str(red), str(green), str(blue)])
    if not params:
        return ""
    return f"\033[{';'.join(params)}m"


__all__ = [
    "Classifier",
    "PLAIN_TEXT_CLASSIFIER",
    "PLAIN_STYLE_TAG",
    "DEFAULT_STYLE",
    "classify",
    "highlight",
    "register_classifier",
    "sanitize_terminal_text",
    "style_sgr",
]
