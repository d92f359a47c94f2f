"""
Materialized location paths.

A path is a dot-delimited list of normalized segments anchored at the
workspace root, e.g. ``root.garage.shelf_a``. Segments only ever contain
``[a-z0-9_]`` so they are valid PostgreSQL ltree labels as well.
"""
import re
import unicodedata
from typing import Optional

ROOT_SEGMENT = "root"
SEPARATOR = "."
MAX_DEPTH = 5
# Transliteration can lengthen a name (ß -> ss, ligatures), so segments are capped.
MAX_SEGMENT_LENGTH = 255

# Letters that NFKD does not decompose into base letter + combining mark.
_TRANSLITERATIONS = {
    "ł": "l",
    "Ł": "L",
    "đ": "d",
    "Đ": "D",
    "ð": "d",
    "Ð": "D",
    "ø": "o",
    "Ø": "O",
    "ı": "i",
    "ß": "ss",
    "æ": "ae",
    "Æ": "AE",
    "œ": "oe",
    "Œ": "OE",
    "þ": "th",
    "Þ": "TH",
}

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def transliterate(text: str) -> str:
    """Replace accented and special Latin letters with their ASCII base letters."""
    value = "".join(_TRANSLITERATIONS.get(char, char) for char in text)
    value = unicodedata.normalize("NFKD", value)
    return "".join(char for char in value if not unicodedata.combining(char))


def normalize(name: str) -> str:
    """
    Turn a human-entered location name into a path segment.

    >>> normalize("Górna Półka #1")
    'gorna_polka_1'
    >>> normalize("###")
    '_'
    """
    if not name:
        raise ValueError("Location name must not be empty")

    segment = transliterate(name).lower()
    segment = _INVALID_CHARS.sub("_", segment)
    segment = _REPEATED_UNDERSCORES.sub("_", segment)
    segment = segment.strip("_")[:MAX_SEGMENT_LENGTH].rstrip("_")
    return segment or "_"


def compose(parent_path: Optional[str], segment: str) -> str:
    """Append ``segment`` to ``parent_path``; no parent means a first-level location."""
    if not parent_path:
        return f"{ROOT_SEGMENT}{SEPARATOR}{segment}"
    return f"{parent_path}{SEPARATOR}{segment}"


def depth(path: str) -> int:
    """Number of segments in ``path``, the root segment included."""
    return len(path.split(SEPARATOR))


def parent_path(path: str) -> str:
    """All segments but the last, or an empty string for a single segment."""
    segments = path.split(SEPARATOR)
    if len(segments) <= 1:
        return ""
    return SEPARATOR.join(segments[:-1])
