"""Pre-compiled regex patterns for the egg pool.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import WHITESPACE, WORD_START

    WHITESPACE.sub(" ", text)
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# First character of every word, used for title-casing PokeAPI slugs
WORD_START = re.compile(r'\b\w')

# Characters allowed in a cache file name; everything else becomes "_"
UNSAFE_KEY_CHARS = re.compile(r'[^A-Za-z0-9._-]')
