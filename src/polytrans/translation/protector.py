"""
Substring protection for text sent to translation engines.

Translation engines happily translate, re-space or re-punctuate things that
must come back byte-for-byte: shell variable references, printf format
specifiers, Markdown/HTML links and raw URLs. This module swaps every such
span for an opaque placeholder token before translation and puts the
original text back afterwards.

The placeholder approach:
    1. All matches of the protected patterns are found left to right
    2. Each match is replaced by its own index-qualified token
       (e.g. "POLYREF0POLYREF", "POLYREF1POLYREF")
    3. The text with tokens is sent to the engine
    4. Every token found in the engine output is replaced by the span it
       stands for, wherever the engine moved or repeated it

License: MIT
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..config.settings import PLACEHOLDER_PREFIX


# =============================================================================
# PROTECTED PATTERNS
# =============================================================================

# Regex patterns for spans that must survive translation unchanged.
# Order matters when two patterns could match at the same position:
# earlier patterns win.
DEFAULT_PROTECTED_PATTERNS: List[str] = [
    # Shell-style variable references: ${NAME}, ${obj.attr}, $NAME
    r'\$\{[A-Za-z0-9_.]+\}',
    r'\$[A-Za-z0-9_.]+',

    # printf-style format specifiers: %s, %d, %5.2f, %-10s, %(name)s
    r'%(?:\([A-Za-z_][A-Za-z0-9_]*\))?[-+#0]*\d*(?:\.\d+)?[a-zA-Z]',

    # Markdown images and links: ![alt](src), [text](url)
    r'!\[.*?\]\(.*?\)',
    r'\[.*?\]\(.*?\)',

    # HTML anchors: <a href="...">text</a>
    r'<a\b[^>]*>.*?</a>',

    # Raw URLs
    r'https?://[^\s]+',
]


class SubstringProtector:
    """
    Replace protected spans with placeholder tokens and restore them.

    A protector is stateless between calls: the mapping produced by
    protect() is owned by the caller and passed back to restore().

    Attributes:
        patterns: The regex patterns whose matches are protected.
        prefix: Marker wrapped around each placeholder index.
    """

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        prefix: str = PLACEHOLDER_PREFIX
    ):
        self.patterns = list(DEFAULT_PROTECTED_PATTERNS if patterns is None else patterns)
        self.prefix = prefix
        self._regex = (
            re.compile("|".join(f"(?:{p})" for p in self.patterns))
            if self.patterns else None
        )

    def _prefix_for(self, text: str) -> str:
        """Pick a token marker that does not already occur in the text."""
        prefix = self.prefix
        while prefix.lower() in text.lower():
            prefix += "X"
        return prefix

    def protect(self, text: str) -> Tuple[str, Dict[str, str]]:
        """
        Replace every protected span with a unique placeholder token.

        Args:
            text: The text unit to protect.

        Returns:
            Tuple of (protected_text, placeholders) where placeholders maps
            each token to the original span it replaced. A text without
            protected spans comes back unchanged with an empty mapping.

        Example:
            >>> protector = SubstringProtector()
            >>> protector.protect("Hello $USER, see https://example.com")
            ('Hello POLYREF0POLYREF, see POLYREF1POLYREF',
             {'POLYREF0POLYREF': '$USER', 'POLYREF1POLYREF': 'https://example.com'})
        """
        placeholders: Dict[str, str] = {}
        if not text or self._regex is None:
            return text, placeholders

        matches = [m for m in self._regex.finditer(text) if m.group(0)]
        if not matches:
            return text, placeholders

        prefix = self._prefix_for(text)
        parts = []
        last_end = 0

        # Identical spans still get distinct tokens so restoration never
        # depends on where the engine put them.
        for index, match in enumerate(matches):
            token = f"{prefix}{index}{prefix}"
            placeholders[token] = match.group(0)
            parts.append(text[last_end:match.start()])
            parts.append(token)
            last_end = match.end()

        parts.append(text[last_end:])
        return "".join(parts), placeholders

    @staticmethod
    def restore(text: str, placeholders: Dict[str, str]) -> str:
        """
        Put the original spans back in place of their tokens.

        Tokens are matched as opaque literals (case-insensitively, since
        some engines change the case of unknown words), so reordered or
        duplicated tokens are all restored.

        Args:
            text: Text containing placeholder tokens, usually engine output.
            placeholders: Mapping returned by protect().

        Returns:
            str: The text with every token replaced by its original span.
        """
        if not text or not placeholders:
            return text

        # Longest tokens first so "P10P" is never clipped by "P1P".
        for token in sorted(placeholders, key=len, reverse=True):
            original = placeholders[token]
            text = re.sub(
                re.escape(token),
                lambda _match, original=original: original,
                text,
                flags=re.IGNORECASE
            )
        return text


# Shared protector using the default pattern set.
DEFAULT_PROTECTOR = SubstringProtector()


def protect_substrings(text: str) -> Tuple[str, Dict[str, str]]:
    """Protect text with the default pattern set."""
    return DEFAULT_PROTECTOR.protect(text)


def restore_substrings(text: str, placeholders: Dict[str, str]) -> str:
    """Restore text protected by protect_substrings()."""
    return SubstringProtector.restore(text, placeholders)
