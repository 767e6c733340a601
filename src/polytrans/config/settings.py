"""
Configuration settings for polytrans.

This module centralizes all configuration constants and default values
used by the translation engine. Settings are grouped by their functional
area for easy maintenance.

Configuration includes:
    - Cache location and retention
    - Concurrency and engine defaults
    - Retry and timeout settings for external translation calls
    - Connectivity probe parameters
    - Supported and default target languages

Most values can be overridden through environment variables so the same
code runs unchanged on a workstation, in CI and inside containers.

License: MIT
"""

import os
from pathlib import Path


def _env_flag(name: str, default: str = "false") -> bool:
    """Interpret an environment variable as a boolean switch."""
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# =============================================================================
# CACHE CONFIGURATION
# =============================================================================

# Directory holding the persistent translation cache.
# Defaults to the per-user cache directory (~/.cache/polytrans).
CACHE_DIR = Path(
    os.getenv("POLYTRANS_CACHE_DIR", str(Path.home() / ".cache" / "polytrans"))
)

# JSON file storing {lang: {normalized_text: {"v": value, "t": timestamp}}}.
CACHE_FILE = CACHE_DIR / "cache.json"

# Entries not used for this many days are removed by the pruning operation.
CACHE_RETENTION_DAYS = int(os.getenv("POLYTRANS_CACHE_RETENTION_DAYS", "30"))

# Persist the cache after every successful write instead of only at exit.
# Trades disk I/O for resilience against crashes during long runs.
CACHE_SAVE_AFTER_WRITE = _env_flag("POLYTRANS_CACHE_SAVE_AFTER_WRITE")

# =============================================================================
# TRANSLATION ENGINE CONFIGURATION
# =============================================================================

# Maximum number of external translation calls in flight at once.
# Shared across all target languages of a run.
DEFAULT_JOBS = int(os.getenv("POLYTRANS_JOBS", "8"))

# Engine identifier passed through to the translation backend.
# "libretranslate" selects the HTTP backend; anything else is a
# translate-shell engine name.
DEFAULT_ENGINE = os.getenv("POLYTRANS_ENGINE", "google")

# Source language hint ("auto" lets the engine detect it).
DEFAULT_SOURCE_LANG = os.getenv("POLYTRANS_SOURCE_LANG", "auto")

# Engines understood by translate-shell.
TRANS_SHELL_ENGINES = ["google", "bing", "yandex", "apertium", "spell", "auto"]

# Executable used by the translate-shell backend.
TRANS_COMMAND = os.getenv("POLYTRANS_TRANS_COMMAND", "trans")

# URL of the LibreTranslate API instance used by the HTTP backend.
# Use LIBRETRANSLATE_URL=http://libretranslate:5000/translate for Docker.
LIBRETRANSLATE_URL = os.getenv("LIBRETRANSLATE_URL", "http://localhost:5000/translate")

# =============================================================================
# RETRY CONFIGURATION
# =============================================================================

# Maximum attempts per external translation call.
TRANSLATION_MAX_ATTEMPTS = 3

# Base delay in seconds between attempts. Grows linearly with the
# attempt number (1s after the first failure, 2s after the second).
TRANSLATION_RETRY_DELAY = 1

# Upper bound in seconds for a single external call. A call that exceeds it
# counts as a failed attempt so it cannot pin a concurrency slot forever.
TRANSLATION_CALL_TIMEOUT = float(os.getenv("POLYTRANS_CALL_TIMEOUT", "60"))

# =============================================================================
# CONNECTIVITY PROBE
# =============================================================================

# Reachability is checked once per run by opening a TCP connection to a
# public DNS resolver.
CONNECTIVITY_PROBE_HOST = "8.8.8.8"
CONNECTIVITY_PROBE_PORT = 53
CONNECTIVITY_PROBE_TIMEOUT = 2.0

# =============================================================================
# SUBSTRING PROTECTION
# =============================================================================

# Marker wrapped around the index of every placeholder token
# (e.g. "POLYREF0POLYREF"). Must not be altered by translation engines.
PLACEHOLDER_PREFIX = "POLYREF"

# =============================================================================
# LANGUAGES
# =============================================================================

SUPPORTED_LANGUAGES = [
    "ar", "bg", "cs", "da", "de", "el", "en", "es", "et",
    "fa", "fi", "fr", "he", "hi", "hr", "hu", "is", "it",
    "ja", "ko", "nl", "no", "pl", "pt_PT", "pt_BR", "ro",
    "ru", "sk", "sv", "tr", "uk", "zh_CN", "zh_TW",
]

# Target languages used when the caller does not request specific ones.
DEFAULT_LANGUAGES = [
    "pt_BR", "en", "es", "it", "de", "fr", "ru", "zh_CN", "zh_TW", "ja", "ko",
]
