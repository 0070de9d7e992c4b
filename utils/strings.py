"""String processing utilities for the egg pool.

Name formatting mirrors how PokeAPI slugs are shown to trainers:
``"vine-whip"`` is displayed as ``"Vine Whip"`` and typed names are turned
back into slugs for single-entity lookups.
"""

import base64

from utils.patterns import WHITESPACE, WORD_START


def format_name(slug: str) -> str:
    """Turn a PokeAPI slug into a display name.

    Example:
        "vine-whip" -> "Vine Whip"
        "will-o-wisp" -> "Will O Wisp"
    """
    spaced = slug.replace("-", " ")
    return WORD_START.sub(lambda m: m.group(0).upper(), spaced)


def to_slug(name: str) -> str:
    """Reverse of :func:`format_name` for lookups.

    Example:
        "Vine Whip" -> "vine-whip"
        "  Mr   Mime " -> "mr-mime"
    """
    return WHITESPACE.sub("-", name.lower().strip())


def capitalize(s: str) -> str:
    """Upper-case the first character only (``"pikachu"`` -> ``"Pikachu"``)."""
    return s[:1].upper() + s[1:]


def normalize_whitespace(s: str) -> str:
    """Collapse runs of whitespace to single spaces and strip the ends."""
    return WHITESPACE.sub(" ", s).strip()


def to_base64(text: str) -> str:
    """Encode text as UTF-8 and return its base64 form."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def from_base64(data: str) -> str:
    """Decode base64 content as returned by the GitHub contents API.

    GitHub wraps the payload at 60 columns, so embedded newlines are removed
    before decoding.
    """
    cleaned = WHITESPACE.sub("", data)
    return base64.b64decode(cleaned).decode("utf-8")
