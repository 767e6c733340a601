"""Pytest configuration and shared fixtures for polytrans tests."""
import sys
import threading
import time
from pathlib import Path

import pytest

# Add src directory to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
SRC_DIR = PROJECT_ROOT / 'src'
sys.path.insert(0, str(SRC_DIR))

from polytrans.translation.backends import TranslationBackend, TranslationBackendError


class FakeBackend(TranslationBackend):
    """
    Deterministic backend: "<lang>:<text>".

    Records every call and the highest number of calls seen in flight at
    the same time.
    """

    name = "fake"

    def __init__(self, delay: float = 0.0, transform=None):
        self.delay = delay
        self.transform = transform or (lambda text, lang: f"{lang}:{text}")
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def translate(self, text, target_lang, source_lang="auto", timeout=60):
        with self._lock:
            self.calls.append((text, target_lang))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            return self.transform(text, target_lang)
        finally:
            with self._lock:
                self.active -= 1


class FlakyBackend(FakeBackend):
    """Fails the first `failures` calls, then behaves like FakeBackend."""

    def __init__(self, failures: int, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures

    def translate(self, text, target_lang, source_lang="auto", timeout=60):
        with self._lock:
            self.calls.append((text, target_lang))
            if self.failures > 0:
                self.failures -= 1
                raise TranslationBackendError("engine unavailable", engine=self.name)
        return self.transform(text, target_lang)


class BrokenBackend(FakeBackend):
    """Every call fails."""

    def translate(self, text, target_lang, source_lang="auto", timeout=60):
        with self._lock:
            self.calls.append((text, target_lang))
        raise TranslationBackendError("engine unavailable", engine=self.name)


@pytest.fixture
def cache_path(tmp_path):
    """Location of a cache file inside the test's temporary directory."""
    return tmp_path / "cache" / "cache.json"


@pytest.fixture
def sleeps():
    """Records requested retry delays instead of sleeping."""
    return []


@pytest.fixture
def no_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def fake_backend():
    return FakeBackend()
