"""Key decoding and event translation."""

from .events import InputEvent, translate_key
from .reader import read_key

__all__ = ["InputEvent", "read_key", "translate_key"]
