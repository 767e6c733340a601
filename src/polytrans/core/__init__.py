"""
Core utilities module for polytrans.

This module provides shared helpers used by the translation engine,
including cache-key normalization, language-code handling and the
one-shot network reachability probe.

Submodules:
    string_utils: Text normalization and language-code utilities.
    connections: Network reachability check.
"""

from .string_utils import (
    is_blank,
    split_surrounding_whitespace,
    normalize_cache_key,
    normalize_language_code,
    to_engine_language_code,
)
from .connections import is_network_reachable
