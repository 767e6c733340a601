"""
Translation submodule for polytrans.

This submodule provides cached, concurrent translation of text units into
many languages, with support for:
- Placeholder protection of variables, format specifiers, links and URLs
- A persistent JSON cache with last-used timestamps and pruning
- Retried engine calls that degrade to pass-through instead of failing
- A scheduler bounding simultaneous engine calls across all languages

License: MIT
"""

from .protector import (
    DEFAULT_PROTECTED_PATTERNS,
    SubstringProtector,
    protect_substrings,
    restore_substrings,
)
from .cache import (
    CacheEntry,
    TranslationCache,
    prune_stale,
)
from .backends import (
    TranslationBackend,
    TranslationBackendError,
    TranslateShellBackend,
    LibreTranslateBackend,
    get_backend,
)
from .translator import (
    TranslationInvoker,
    TranslationOutcome,
    TranslationStats,
)
from .scheduler import (
    SchedulerState,
    TranslationJob,
    TranslationRunResult,
    TranslationScheduler,
    create_scheduler,
)
from .documents import (
    TextDocument,
    MarkdownDocument,
    HtmlDocument,
    JsonDocument,
    load_document,
    output_path,
    translate_document,
)

__all__ = [
    # Substring protection
    "DEFAULT_PROTECTED_PATTERNS",
    "SubstringProtector",
    "protect_substrings",
    "restore_substrings",
    # Cache
    "CacheEntry",
    "TranslationCache",
    "prune_stale",
    # Engine backends
    "TranslationBackend",
    "TranslationBackendError",
    "TranslateShellBackend",
    "LibreTranslateBackend",
    "get_backend",
    # Invocation
    "TranslationInvoker",
    "TranslationOutcome",
    "TranslationStats",
    # Scheduling
    "SchedulerState",
    "TranslationJob",
    "TranslationRunResult",
    "TranslationScheduler",
    "create_scheduler",
    # Documents
    "TextDocument",
    "MarkdownDocument",
    "HtmlDocument",
    "JsonDocument",
    "load_document",
    "output_path",
    "translate_document",
]
