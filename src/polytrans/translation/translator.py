"""
Retrying invocation of the external translation engine.

This module wraps a single "translate this text into this language" call
with the behavior every caller needs:
    - Protected substrings (variables, format specifiers, links, URLs) are
      swapped for placeholders before the call and restored afterwards
    - Failed attempts are retried with a growing delay (1s, then 2s)
    - When the network is known to be down, or every attempt fails, the
      original text is returned unchanged instead of raising

The invoker never touches the cache. Writing results back is the job of
the scheduler, so that only values which went through protection and
restoration are ever cached.

License: MIT
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..config.settings import (
    DEFAULT_ENGINE,
    DEFAULT_SOURCE_LANG,
    TRANSLATION_CALL_TIMEOUT,
    TRANSLATION_MAX_ATTEMPTS,
    TRANSLATION_RETRY_DELAY,
)
from ..config.logging_config import get_logger
from ..core.string_utils import split_surrounding_whitespace
from .backends import TranslationBackend, get_backend
from .protector import SubstringProtector

# Module-level logger for consistent logging.
logger = get_logger(__name__)


class TranslationStats:
    """
    Thread-safe counters describing translation activity.

    Attributes:
        cache_hits: Units answered from the cache.
        net_calls: Successful calls to the external engine.
        failed_calls: Units for which every attempt failed.
        failed_attempts: Individual attempts that failed, including those
            later recovered by a retry.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.cache_hits = 0
        self.net_calls = 0
        self.failed_calls = 0
        self.failed_attempts = 0

    def increment(self, counter: str, amount: int = 1) -> None:
        """Atomically add amount to one of the counters."""
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def snapshot(self) -> Dict[str, int]:
        """Return a consistent copy of all counters."""
        with self._lock:
            return {
                "cache_hits": self.cache_hits,
                "net_calls": self.net_calls,
                "failed_calls": self.failed_calls,
                "failed_attempts": self.failed_attempts,
            }

    def reset(self) -> None:
        with self._lock:
            self.cache_hits = 0
            self.net_calls = 0
            self.failed_calls = 0
            self.failed_attempts = 0

    def summary(self, counters: Optional[Dict[str, int]] = None) -> Dict[str, float]:
        """
        Summarize counters with cache/network shares of resolved units.

        Args:
            counters: Counters to summarize (e.g. a per-run delta). Defaults
                to the current snapshot.

        Returns:
            The counters plus "total", "cache_percent" and "net_percent".
        """
        counters = dict(counters if counters is not None else self.snapshot())
        total = counters["cache_hits"] + counters["net_calls"]
        counters["total"] = total
        counters["cache_percent"] = (counters["cache_hits"] / total * 100) if total else 0.0
        counters["net_percent"] = (counters["net_calls"] / total * 100) if total else 0.0
        return counters


@dataclass
class TranslationOutcome:
    """
    Result of one invocation.

    Attributes:
        text: The translation, or the original text on pass-through.
        translated: True if the engine produced the text.
        attempts: Number of engine attempts made (0 when offline).
    """
    text: str
    translated: bool
    attempts: int = 0


class TranslationInvoker:
    """
    Call the external engine with protection, retries and pass-through.

    Attributes:
        online: Result of the run's one-time reachability check. When False
            every call passes the text through without touching the network.
        engine: Default engine identifier.
        source_lang: Default source language hint.
        stats: Counters shared with the scheduler.
    """

    def __init__(
        self,
        backend: Optional[TranslationBackend] = None,
        engine: str = DEFAULT_ENGINE,
        source_lang: str = DEFAULT_SOURCE_LANG,
        online: bool = True,
        protector: Optional[SubstringProtector] = None,
        stats: Optional[TranslationStats] = None,
        max_attempts: int = TRANSLATION_MAX_ATTEMPTS,
        retry_delay: float = TRANSLATION_RETRY_DELAY,
        timeout: float = TRANSLATION_CALL_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.engine = engine
        self.source_lang = source_lang
        self.online = online
        self.protector = protector or SubstringProtector()
        self.stats = stats or TranslationStats()
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._sleep = sleep
        self._backends: Dict[str, TranslationBackend] = {}
        self._backends_lock = threading.Lock()
        if backend is not None:
            self._backends[engine] = backend

    def _backend_for(self, engine: str) -> TranslationBackend:
        with self._backends_lock:
            backend = self._backends.get(engine)
            if backend is None:
                backend = get_backend(engine)
                self._backends[engine] = backend
            return backend

    def translate_with_outcome(
        self,
        text: str,
        lang: str,
        source_lang: Optional[str] = None,
        engine: Optional[str] = None
    ) -> TranslationOutcome:
        """
        Translate text, reporting whether the engine actually produced it.

        Surrounding whitespace is kept out of the engine call and put back
        around the result.

        Args:
            text: The text unit to translate.
            lang: Target language code.
            source_lang: Source language hint (defaults to the invoker's).
            engine: Engine identifier (defaults to the invoker's).

        Returns:
            TranslationOutcome: The translated or passed-through text.
        """
        if not self.online:
            return TranslationOutcome(text=text, translated=False)

        leading, core, trailing = split_surrounding_whitespace(text)
        if not core:
            return TranslationOutcome(text=text, translated=False)

        source_lang = source_lang or self.source_lang
        engine = engine or self.engine
        backend = self._backend_for(engine)

        protected, placeholders = self.protector.protect(core)

        for attempt in range(self.max_attempts):
            try:
                result = backend.translate(protected, lang, source_lang, self.timeout)
            except Exception as e:
                self.stats.increment("failed_attempts")
                logger.warning(
                    f"Translation attempt {attempt + 1}/{self.max_attempts} "
                    f"to {lang} via {engine} failed: {e}"
                )
                if attempt < self.max_attempts - 1:
                    self._sleep(self.retry_delay * (attempt + 1))
                continue

            restored = self.protector.restore(result, placeholders)
            self.stats.increment("net_calls")
            return TranslationOutcome(
                text=f"{leading}{restored}{trailing}",
                translated=True,
                attempts=attempt + 1
            )

        # Every attempt failed: degrade to the untranslated text.
        self.stats.increment("failed_calls")
        logger.error(
            f"Giving up translating to {lang} after {self.max_attempts} attempts: "
            f"{core[:60]!r}"
        )
        return TranslationOutcome(text=text, translated=False, attempts=self.max_attempts)

    def translate(
        self,
        text: str,
        lang: str,
        source_lang: Optional[str] = None,
        engine: Optional[str] = None
    ) -> str:
        """
        Translate text, returning the original text on any failure.

        Example:
            >>> invoker = TranslationInvoker(engine="google")
            >>> invoker.translate("Hello $USER", "pt_BR")
            'Olá $USER'
        """
        return self.translate_with_outcome(text, lang, source_lang, engine).text
