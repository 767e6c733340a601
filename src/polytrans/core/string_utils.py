"""
String manipulation utilities for polytrans.

This module provides the normalization rules that decide when two text
units share a cache entry, and the conversions between the language codes
used in cache keys and file names (pt_BR) and the codes expected by
translation engines (pt-BR).

License: MIT
"""

import re
from typing import Optional, Tuple


# Pairs of characters accepted as one enclosing layer of quotes.
QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "`": "`",
    "“": "”",
    "‘": "’",
    "«": "»",
}

_LANGUAGE_CODE_PATTERN = re.compile(r'^([A-Za-z]{2,3})(?:[_-]([A-Za-z]{2,4}))?$')


def is_blank(text: Optional[str]) -> bool:
    """Return True for None or whitespace-only text."""
    return text is None or not text.strip()


def normalize_cache_key(text: str) -> str:
    """
    Reduce a text unit to the form used as its cache key.

    Processing steps:
        1. Strip surrounding whitespace
        2. Remove a single layer of matching enclosing quotes
        3. Strip whitespace exposed by removing the quotes
        4. Lower-case the result

    Args:
        text: The text unit as supplied by the caller.

    Returns:
        str: The normalized key. Texts that differ only in case, in
            surrounding whitespace or in one layer of quoting share a key.

    Example:
        >>> normalize_cache_key(' "Hello" ')
        'hello'
        >>> normalize_cache_key("''nested''")
        "'nested'"
    """
    if not text:
        return ""

    key = text.strip()

    # Only one layer is removed so that quoting which is part of the
    # message itself survives.
    if len(key) >= 2 and QUOTE_PAIRS.get(key[0]) == key[-1]:
        key = key[1:-1].strip()

    return key.lower()


def normalize_language_code(lang: str) -> str:
    """
    Canonicalize a language code for use as a cache key.

    The language part is lower-cased and the region part upper-cased, with
    an underscore separator, so "EN", "pt-br" and "pt_BR" all resolve to
    the same spelling as the supported-language list.

    Args:
        lang: A language code such as "en", "En", "pt-br" or "zh_CN".

    Returns:
        str: The canonical code, or the stripped input unchanged if it does
            not look like a language code.

    Example:
        >>> normalize_language_code("En")
        'en'
        >>> normalize_language_code("pt-br")
        'pt_BR'
    """
    lang = (lang or "").strip()
    match = _LANGUAGE_CODE_PATTERN.match(lang)
    if not match:
        return lang

    language, region = match.groups()
    if region:
        return f"{language.lower()}_{region.upper()}"
    return language.lower()


def to_engine_language_code(lang: str) -> str:
    """
    Convert a language code to the dash-separated form used by engines.

    Example:
        >>> to_engine_language_code("zh_TW")
        'zh-TW'
    """
    return normalize_language_code(lang).replace("_", "-")


def split_surrounding_whitespace(text: str) -> Tuple[str, str, str]:
    """
    Split text into (leading whitespace, content, trailing whitespace).

    Example:
        >>> split_surrounding_whitespace("  Hello world\\n")
        ('  ', 'Hello world', '\\n')
    """
    content = text.strip()
    if not content:
        return text, "", ""
    leading = text[:len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()):]
    return leading, content, trailing
