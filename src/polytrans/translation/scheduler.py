"""
Concurrent translation of text units into many languages.

This module drives a translation run: every (language, text unit) pair
becomes one job, all jobs share one ThreadPoolExecutor, and a semaphore
caps how many external engine calls are in flight at once across all
languages. Each job:
    1. Looks the unit up in the cache (a hit needs no engine call)
    2. On a miss, acquires a slot and asks the invoker for a translation
    3. Writes successful translations back to the cache

A run moves through Idle -> Dispatching -> Draining -> Done. Individual
failures never abort it: the worst case for any unit is its original,
untranslated text.

License: MIT
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..config.settings import (
    CACHE_FILE,
    CACHE_SAVE_AFTER_WRITE,
    DEFAULT_ENGINE,
    DEFAULT_JOBS,
    DEFAULT_SOURCE_LANG,
)
from ..config.logging_config import get_logger
from ..core.connections import is_network_reachable
from ..core.string_utils import (
    is_blank,
    normalize_cache_key,
    normalize_language_code,
    split_surrounding_whitespace,
)
from .backends import TranslationBackend, get_backend
from .cache import TranslationCache
from .translator import TranslationInvoker, TranslationOutcome

# Module-level logger for consistent logging.
logger = get_logger(__name__)

# Callback invoked after each unit: (language, units done, units total).
UnitDoneCallback = Callable[[str, int, int], None]


class SchedulerState(Enum):
    """Lifecycle of a translation run."""
    IDLE = "idle"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    DONE = "done"


@dataclass(frozen=True)
class TranslationJob:
    """
    One (language, text unit) pair to resolve.

    Attributes:
        lang: Target language code.
        index: Position of the unit in the caller's list.
        text: The text unit.
    """
    lang: str
    index: int
    text: str


@dataclass
class TranslationRunResult:
    """
    Outcome of a translation run.

    Attributes:
        translations: Language code -> translated units, in input order.
        stats: Counters accumulated during this run only.
        duration: Wall-clock seconds spent in the run.
    """
    translations: Dict[str, List[str]] = field(default_factory=dict)
    stats: Dict[str, float] = field(default_factory=dict)
    duration: float = 0.0


class TranslationScheduler:
    """
    Cache-aware, concurrency-bounded translation of text units.

    Attributes:
        cache: The translation cache consulted and updated by every job.
        invoker: The retrying engine wrapper.
        jobs: Maximum number of simultaneous engine calls.
        force: If True, cached values are ignored and overwritten.
        single_flight: If True, concurrent misses for the same (language,
            text) wait for the first caller's engine call instead of
            issuing their own.
        state: Current run state.
    """

    def __init__(
        self,
        cache: TranslationCache,
        invoker: TranslationInvoker,
        jobs: int = DEFAULT_JOBS,
        force: bool = False,
        single_flight: bool = False,
        on_unit_done: Optional[UnitDoneCallback] = None
    ):
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.cache = cache
        self.invoker = invoker
        self.jobs = jobs
        self.force = force
        self.single_flight = single_flight
        self.on_unit_done = on_unit_done
        self.state = SchedulerState.IDLE

        self._slots = threading.BoundedSemaphore(jobs)
        self._inflight: Dict[Tuple[str, str], Future] = {}
        self._inflight_lock = threading.Lock()
        # Pass-through results of failed calls, kept until the next run()
        # starts. The persistent cache never holds them.
        self._passthrough: Dict[Tuple[str, str], str] = {}
        self._passthrough_lock = threading.Lock()

    @property
    def stats(self):
        return self.invoker.stats

    # -------------------------------------------------------------------------
    # Single unit
    # -------------------------------------------------------------------------

    def translate_unit(self, text: str, lang: str) -> str:
        """
        Translate one text unit into one language.

        Composes cache lookup, protected and retried engine invocation and
        cache write. The cache holds translations of the stripped unit; the
        unit's own surrounding whitespace is put back on the result. Safe to
        call from many threads at once.

        Args:
            text: The text unit.
            lang: Target language code.

        Returns:
            str: The translation; the original text if translation was not
                possible; a blank unit unchanged.

        Example:
            >>> scheduler.translate_unit("Save file", "de")
            'Datei speichern'
        """
        if is_blank(text):
            return text

        leading, content, trailing = split_surrounding_whitespace(text)
        return f"{leading}{self._translate_content(content, normalize_language_code(lang))}{trailing}"

    def _translate_content(self, content: str, lang: str) -> str:
        value, found = self.cache.lookup(lang, content, force=self.force)
        if found:
            self.stats.increment("cache_hits")
            logger.debug(f"Cache hit [{lang}] {content[:40]!r}")
            return value

        key = (lang, normalize_cache_key(content))
        with self._passthrough_lock:
            if key in self._passthrough:
                return self._passthrough[key]

        if not self.single_flight:
            return self._resolve(content, lang, key).text

        with self._inflight_lock:
            pending = self._inflight.get(key)
            if pending is None:
                owner = Future()
                self._inflight[key] = owner

        if pending is not None:
            # Another worker is already translating this text.
            outcome = pending.result()
            if outcome.translated:
                self.stats.increment("cache_hits")
            return outcome.text

        try:
            outcome = self._resolve(content, lang, key)
        except BaseException as e:
            owner.set_exception(e)
            raise
        else:
            owner.set_result(outcome)
            return outcome.text
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)

    def _resolve(self, text: str, lang: str, key: Tuple[str, str]) -> TranslationOutcome:
        """Invoke the engine under a concurrency slot and record the result."""
        with self._slots:
            outcome = self.invoker.translate_with_outcome(text, lang)

        if outcome.translated:
            self.cache.store(lang, text, outcome.text)
        elif self.invoker.online:
            with self._passthrough_lock:
                self._passthrough[key] = outcome.text
        return outcome

    # -------------------------------------------------------------------------
    # Whole run
    # -------------------------------------------------------------------------

    def run(self, units: Sequence[str], languages: Sequence[str]) -> TranslationRunResult:
        """
        Translate every unit into every language.

        Args:
            units: Text units, translated independently of each other.
            languages: Target language codes.

        Returns:
            TranslationRunResult: Translations per language in input order,
                plus the counters accumulated during the run.

        Example:
            >>> result = scheduler.run(["Open", "Close"], ["de", "fr"])
            >>> result.translations["fr"]
            ['Ouvrir', 'Fermer']
        """
        start = time.time()
        before = self.stats.snapshot()
        units = list(units)
        languages = list(dict.fromkeys(normalize_language_code(lang) for lang in languages))

        translations = {lang: list(units) for lang in languages}
        done = {lang: 0 for lang in languages}
        done_lock = threading.Lock()

        # Texts that failed in an earlier run get another chance.
        with self._passthrough_lock:
            self._passthrough.clear()

        self.state = SchedulerState.DISPATCHING
        logger.info(
            f"Translating {len(units)} units into {len(languages)} languages "
            f"(jobs: {self.jobs}, online: {self.invoker.online})"
        )

        with ThreadPoolExecutor(max_workers=self.jobs) as executor:
            futures = {
                executor.submit(self.translate_unit, text, lang): TranslationJob(lang, index, text)
                for lang in languages
                for index, text in enumerate(units)
            }

            self.state = SchedulerState.DRAINING
            for future in as_completed(futures):
                job = futures[future]
                try:
                    translations[job.lang][job.index] = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error translating unit {job.index} to {job.lang}: {e}")
                    translations[job.lang][job.index] = job.text

                with done_lock:
                    done[job.lang] += 1
                    count = done[job.lang]
                if self.on_unit_done:
                    try:
                        self.on_unit_done(job.lang, count, len(units))
                    except Exception as e:
                        logger.error(f"Progress callback failed for {job.lang}: {e}")

        self.state = SchedulerState.DONE
        after = self.stats.snapshot()
        run_stats = self.stats.summary({name: after[name] - before[name] for name in after})
        duration = time.time() - start

        logger.info(
            f"Run finished in {duration:.2f}s: {run_stats['cache_hits']} cache hits, "
            f"{run_stats['net_calls']} network calls, {run_stats['failed_calls']} failures"
        )
        return TranslationRunResult(translations=translations, stats=run_stats, duration=duration)


def create_scheduler(
    engine: str = DEFAULT_ENGINE,
    source_lang: str = DEFAULT_SOURCE_LANG,
    jobs: int = DEFAULT_JOBS,
    force: bool = False,
    cache: Optional[TranslationCache] = None,
    cache_path: Union[str, Path] = CACHE_FILE,
    save_after_write: bool = CACHE_SAVE_AFTER_WRITE,
    online: Optional[bool] = None,
    backend: Optional[TranslationBackend] = None,
    single_flight: bool = False,
    on_unit_done: Optional[UnitDoneCallback] = None
) -> TranslationScheduler:
    """
    Build a scheduler with a loaded cache and a configured invoker.

    Reachability is probed here, once, unless the caller supplies it.

    Args:
        engine: Engine identifier ("google", "bing", "libretranslate", ...).
        source_lang: Source language hint.
        jobs: Maximum number of simultaneous engine calls.
        force: Ignore and overwrite cached translations.
        cache: An already loaded cache. If None, one is loaded from cache_path.
        cache_path: Location of the cache file.
        save_after_write: Persist the cache after every successful write.
        online: Known reachability; probed when None.
        backend: Engine backend; selected from engine when None.
        single_flight: Collapse concurrent misses for the same text.
        on_unit_done: Progress callback.

    Returns:
        TranslationScheduler: Ready to run.

    Raises:
        ValueError: If the engine is unknown or jobs is below 1.
    """
    if backend is None:
        backend = get_backend(engine)

    if cache is None:
        cache = TranslationCache(cache_path, save_after_write=save_after_write)
        cache.load()

    if online is None:
        online = is_network_reachable()
        if not online:
            logger.warning("Network unreachable: texts will be passed through untranslated")

    invoker = TranslationInvoker(
        backend=backend,
        engine=engine,
        source_lang=source_lang,
        online=online
    )
    return TranslationScheduler(
        cache,
        invoker,
        jobs=jobs,
        force=force,
        single_flight=single_flight,
        on_unit_done=on_unit_done
    )
