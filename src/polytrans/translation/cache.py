"""
Persistent translation cache for polytrans.

This module provides a two-level, thread-safe cache mapping a target
language and a normalized source text to the translation obtained for it.
The cache avoids asking the external engine for the same text twice, across
runs as well as within one.

On disk the cache is a single JSON document:

    {
        "pt_BR": {
            "hello world": {"v": "Olá mundo", "t": "2026-01-15T10:30:45+00:00"}
        }
    }

where "v" is the cached translation and "t" the last time it was used.
Entries unused for longer than the retention window are removed by prune().

License: MIT
"""

import json
import os
import re
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ..config.settings import (
    CACHE_FILE,
    CACHE_RETENTION_DAYS,
    CACHE_SAVE_AFTER_WRITE,
)
from ..config.logging_config import get_logger
from ..core.string_utils import normalize_cache_key, normalize_language_code

# Module-level logger for consistent logging.
logger = get_logger(__name__)

# Fractional seconds are padded or truncated to exactly six digits, the
# only length every supported Python accepts.
_FRACTION_PATTERN = re.compile(r'\.(\d+)')


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_utf8_encodable(text: str) -> bool:
    """Return False for strings holding lone surrogates."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a persisted "last used" timestamp.

    Accepts ISO 8601 strings (with "Z" or an explicit offset, any number
    of fractional digits) and numeric Unix timestamps. Naive values are
    taken to be UTC.

    Returns:
        The parsed aware datetime, or None if the value is unusable.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value:
        return None

    text = _FRACTION_PATTERN.sub(
        lambda match: "." + match.group(1).ljust(6, "0")[:6],
        value.strip(),
        count=1
    )
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class CacheEntry:
    """
    One resolved translation.

    Attributes:
        value: The translated text.
        last_used: When the entry was last written or returned by a lookup.
    """
    value: str
    last_used: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the persisted {"v", "t"} form."""
        return {"v": self.value, "t": self.last_used.isoformat()}

    @classmethod
    def from_dict(cls, data: Any, default_time: datetime) -> Optional["CacheEntry"]:
        """Build an entry from its persisted form, or None if malformed."""
        if not isinstance(data, dict) or not isinstance(data.get("v"), str):
            return None
        last_used = parse_timestamp(data.get("t")) or default_time
        return cls(value=data["v"], last_used=last_used)


class TranslationCache:
    """
    Thread-safe, JSON-backed translation cache.

    Every read and write of the in-memory structure happens under one lock,
    held only for the duration of the dictionary operation. Saves are
    serialized by a second lock so that concurrent savers never interleave
    their writes, and the file is replaced atomically (write to a temporary
    file in the same directory, then rename).

    Attributes:
        path: Location of the JSON file.
        save_after_write: If True, store() persists the cache immediately.
    """

    def __init__(
        self,
        path: Union[str, Path] = CACHE_FILE,
        save_after_write: bool = CACHE_SAVE_AFTER_WRITE
    ):
        self.path = Path(path)
        self.save_after_write = save_after_write
        self._data: Dict[str, Dict[str, CacheEntry]] = {}
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._data.values())

    # -------------------------------------------------------------------------
    # Lookup and update
    # -------------------------------------------------------------------------

    def lookup(self, lang: str, text: str, force: bool = False) -> Tuple[Optional[str], bool]:
        """
        Look up the cached translation of a text.

        A hit refreshes the entry's last-used time so that entries in active
        use are never pruned.

        Args:
            lang: Target language code (any casing, "_" or "-" separator).
            text: The source text; normalized before the lookup.
            force: If True, report a miss without consulting the cache so
                the caller re-translates and overwrites the entry.

        Returns:
            Tuple of (value, found). value is None when found is False.

        Example:
            >>> cache.store("en", "Olá", "Hello")
            >>> cache.lookup("EN", ' "olá" ')
            ('Hello', True)
        """
        if force:
            return None, False

        lang_key = normalize_language_code(lang)
        text_key = normalize_cache_key(text)

        with self._lock:
            entry = self._data.get(lang_key, {}).get(text_key)
            if entry is None:
                return None, False
            entry.last_used = utcnow()
            return entry.value, True

    def store(self, lang: str, text: str, value: str) -> None:
        """
        Insert or overwrite the translation of a text.

        Args:
            lang: Target language code.
            text: The source text; normalized to form the key.
            value: The translation to cache.
        """
        lang_key = normalize_language_code(lang)
        text_key = normalize_cache_key(text)

        with self._lock:
            self._data.setdefault(lang_key, {})[text_key] = CacheEntry(value=value)

        if self.save_after_write:
            self.save()

    def prune(self, retention: Union[timedelta, int, float] = CACHE_RETENTION_DAYS) -> int:
        """
        Remove entries not used within the retention window.

        Args:
            retention: Either a timedelta or a number of days.

        Returns:
            int: The number of entries removed.

        Example:
            >>> removed = cache.prune(timedelta(days=30))
        """
        if not isinstance(retention, timedelta):
            retention = timedelta(days=retention)
        limit = utcnow() - retention

        removed = 0
        with self._lock:
            for lang_key in list(self._data):
                entries = self._data[lang_key]
                stale = [key for key, entry in entries.items() if entry.last_used < limit]
                for key in stale:
                    del entries[key]
                removed += len(stale)
                if not entries:
                    del self._data[lang_key]

        logger.info(f"Pruned {removed} cache entries unused for more than {retention.days} days")
        return removed

    def clear(self) -> None:
        """Drop every entry from memory (the file is untouched until save)."""
        with self._lock:
            self._data.clear()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> int:
        """
        Replace the in-memory cache with the contents of the cache file.

        A missing, unreadable or corrupt file yields an empty cache; entries
        with the wrong shape are skipped individually. Entries without a
        usable timestamp are treated as used now.

        Returns:
            int: The number of entries loaded.
        """
        data: Dict[str, Dict[str, CacheEntry]] = {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.info(f"No translation cache at {self.path}, starting empty")
            raw = {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable translation cache {self.path}: {e}")
            raw = {}

        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed translation cache {self.path}")
            raw = {}

        now = utcnow()
        skipped = 0
        for lang, entries in raw.items():
            if not isinstance(entries, dict):
                skipped += 1
                continue
            lang_entries = {}
            for key, item in entries.items():
                entry = CacheEntry.from_dict(item, now)
                if entry is None:
                    skipped += 1
                    continue
                lang_entries[key] = entry
            if lang_entries:
                data.setdefault(normalize_language_code(lang), {}).update(lang_entries)

        if skipped:
            logger.warning(f"Skipped {skipped} malformed cache entries")

        with self._lock:
            self._data = data

        count = sum(len(entries) for entries in data.values())
        logger.info(f"Loaded {count} cached translations from {self.path}")
        return count

    def save(self) -> bool:
        """
        Write the cache to disk atomically.

        Failures are logged and reported through the return value rather
        than raised, so a late disk error never aborts a translation run.

        Returns:
            bool: True if the file was written.
        """
        with self._save_lock:
            snapshot: Dict[str, Dict[str, Dict[str, str]]] = {}
            skipped = 0
            with self._lock:
                for lang, entries in self._data.items():
                    for key, entry in entries.items():
                        if not (is_utf8_encodable(key) and is_utf8_encodable(entry.value)):
                            skipped += 1
                            continue
                        snapshot.setdefault(lang, {})[key] = entry.to_dict()

            if skipped:
                logger.warning(f"Not saving {skipped} cache entries that are not valid Unicode text")

            tmp_path = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    dir=str(self.path.parent),
                    prefix=f".{self.path.name}.",
                    suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(snapshot, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
                tmp_path = None
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Error saving translation cache to {self.path}: {e}")
                return False
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.unlink(tmp_path)

        logger.debug(f"Translation cache saved to {self.path}")
        return True

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache contents.

        Returns:
            A dictionary containing:
            - total_entries: Total number of cached translations
            - by_language: Dict mapping language code to entry count
            - file_size: Size of the cache file in bytes (0 if absent)
        """
        with self._lock:
            by_language = {lang: len(entries) for lang, entries in self._data.items()}

        try:
            file_size = self.path.stat().st_size
        except OSError:
            file_size = 0

        return {
            "total_entries": sum(by_language.values()),
            "by_language": dict(sorted(by_language.items())),
            "file_size": file_size,
        }


def prune_stale(
    retention_days: float = CACHE_RETENTION_DAYS,
    cache_path: Union[str, Path] = CACHE_FILE
) -> int:
    """
    Remove stale entries from the cache file, outside of any translation run.

    Loads the cache, prunes entries unused for retention_days and writes the
    result back.

    Args:
        retention_days: Retention window in days.
        cache_path: Location of the cache file.

    Returns:
        int: The number of entries removed.

    Example:
        >>> removed = prune_stale(30)
        >>> print(f"Removed {removed} stale translations")
    """
    cache = TranslationCache(cache_path, save_after_write=False)
    cache.load()
    removed = cache.prune(timedelta(days=retention_days))
    cache.save()
    return removed
