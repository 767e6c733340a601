"""Tests for the persistent JSON translation cache."""
import json
import os
import threading
from datetime import datetime, timedelta, timezone

import pytest

from polytrans.translation.cache import (
    CacheEntry,
    TranslationCache,
    parse_timestamp,
    prune_stale,
    utcnow,
)


def write_cache_file(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def iso_days_ago(days):
    return (utcnow() - timedelta(days=days)).isoformat()


class TestLookupAndStore:

    def test_miss_on_empty_cache(self, cache_path):
        cache = TranslationCache(cache_path)
        assert cache.lookup("de", "Hello") == (None, False)

    def test_normalized_keys_share_an_entry(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("en", "Olá", "Hello")

        assert cache.lookup("EN", "olá") == ("Hello", True)
        assert cache.lookup("En", ' "Olá" ') == ("Hello", True)
        assert len(cache) == 1

    def test_region_codes_normalized(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("pt-br", "Hello", "Olá")

        assert cache.lookup("pt_BR", "Hello") == ("Olá", True)

    def test_force_reports_miss(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("de", "Hello", "Hallo")

        assert cache.lookup("de", "Hello", force=True) == (None, False)

    def test_store_overwrites(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("de", "Hello", "Hallo")
        cache.store("de", "hello", "Servus")

        assert cache.lookup("de", "Hello") == ("Servus", True)
        assert len(cache) == 1

    def test_lookup_refreshes_last_used(self, cache_path):
        write_cache_file(cache_path, {"de": {"hello": {"v": "Hallo", "t": iso_days_ago(29)}}})
        cache = TranslationCache(cache_path)
        cache.load()

        cache.lookup("de", "Hello")

        assert cache.prune(timedelta(days=1)) == 0

    def test_concurrent_stores(self, cache_path):
        cache = TranslationCache(cache_path)

        def worker(offset):
            for i in range(100):
                cache.store("de", f"text {offset}-{i}", f"Text {offset}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 800


class TestPrune:

    def test_removes_only_stale_entries(self, cache_path):
        write_cache_file(cache_path, {
            "de": {
                "old": {"v": "Alt", "t": iso_days_ago(31)},
                "new": {"v": "Neu", "t": iso_days_ago(1)},
            }
        })
        cache = TranslationCache(cache_path)
        cache.load()

        removed = cache.prune(timedelta(days=30))

        assert removed == 1
        assert cache.lookup("de", "old") == (None, False)
        assert cache.lookup("de", "new") == ("Neu", True)

    def test_accepts_days(self, cache_path):
        write_cache_file(cache_path, {"fr": {"old": {"v": "Vieux", "t": iso_days_ago(10)}}})
        cache = TranslationCache(cache_path)
        cache.load()

        assert cache.prune(5) == 1

    def test_empty_language_removed(self, cache_path):
        write_cache_file(cache_path, {"fr": {"old": {"v": "Vieux", "t": iso_days_ago(40)}}})
        cache = TranslationCache(cache_path)
        cache.load()
        cache.prune(timedelta(days=30))

        assert cache.get_cache_stats()["by_language"] == {}

    def test_prune_stale_rewrites_file(self, cache_path):
        write_cache_file(cache_path, {
            "de": {
                "old": {"v": "Alt", "t": iso_days_ago(31)},
                "new": {"v": "Neu", "t": iso_days_ago(1)},
            }
        })

        assert prune_stale(30, cache_path=cache_path) == 1

        data = json.loads(cache_path.read_text(encoding="utf-8"))
        assert list(data["de"]) == ["new"]


class TestPersistence:

    def test_save_and_load(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("pt_BR", "Hello world", "Olá mundo")
        assert cache.save() is True

        data = json.loads(cache_path.read_text(encoding="utf-8"))
        assert data["pt_BR"]["hello world"]["v"] == "Olá mundo"
        assert parse_timestamp(data["pt_BR"]["hello world"]["t"]) is not None

        reloaded = TranslationCache(cache_path)
        assert reloaded.load() == 1
        assert reloaded.lookup("pt_BR", "Hello world") == ("Olá mundo", True)

    def test_missing_file_loads_empty(self, cache_path):
        cache = TranslationCache(cache_path)
        assert cache.load() == 0
        assert len(cache) == 0

    def test_corrupt_file_loads_empty(self, cache_path):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("{not json", encoding="utf-8")

        cache = TranslationCache(cache_path)
        assert cache.load() == 0

    def test_non_object_file_loads_empty(self, cache_path):
        write_cache_file(cache_path, ["de", "fr"])
        assert TranslationCache(cache_path).load() == 0

    def test_malformed_entries_skipped(self, cache_path):
        write_cache_file(cache_path, {
            "de": {
                "good": {"v": "Gut", "t": iso_days_ago(1)},
                "no value": {"t": iso_days_ago(1)},
                "wrong type": "Falsch",
            },
            "fr": "not a mapping",
        })
        cache = TranslationCache(cache_path)

        assert cache.load() == 1
        assert cache.lookup("de", "good") == ("Gut", True)

    def test_unparseable_timestamp_treated_as_now(self, cache_path):
        write_cache_file(cache_path, {"de": {"hello": {"v": "Hallo", "t": "yesterday"}}})
        cache = TranslationCache(cache_path)
        cache.load()

        assert cache.prune(timedelta(days=1)) == 0

    def test_language_keys_normalized_on_load(self, cache_path):
        write_cache_file(cache_path, {"PT-br": {"hello": {"v": "Olá", "t": iso_days_ago(1)}}})
        cache = TranslationCache(cache_path)
        cache.load()

        assert cache.lookup("pt_BR", "Hello") == ("Olá", True)

    def test_save_leaves_no_temporary_files(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("de", "Hello", "Hallo")
        cache.save()
        cache.save()

        assert os.listdir(cache_path.parent) == [cache_path.name]

    def test_save_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        cache = TranslationCache(blocker / "cache.json")
        cache.store("de", "Hello", "Hallo")

        assert cache.save() is False

    def test_lone_surrogate_does_not_block_save(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("de", "Open file", "Datei öffnen")
        cache.store("de", "emoji \ud83d broken", "Emoji \ud83d kaputt")

        assert cache.save() is True
        assert cache.save() is True

        reloaded = TranslationCache(cache_path)
        assert reloaded.load() == 1
        assert reloaded.lookup("de", "Open file") == ("Datei öffnen", True)
        # Still served from memory for the rest of the run.
        assert cache.lookup("de", "emoji \ud83d broken") == ("Emoji \ud83d kaputt", True)

    def test_save_after_write(self, cache_path):
        cache = TranslationCache(cache_path, save_after_write=True)
        cache.store("de", "Hello", "Hallo")

        assert cache_path.exists()
        assert "hello" in json.loads(cache_path.read_text(encoding="utf-8"))["de"]

    def test_clear(self, cache_path):
        cache = TranslationCache(cache_path)
        cache.store("de", "Hello", "Hallo")
        cache.clear()
        assert len(cache) == 0


def test_get_cache_stats(cache_path):
    cache = TranslationCache(cache_path)
    cache.store("fr", "Hello", "Bonjour")
    cache.store("de", "Hello", "Hallo")
    cache.store("de", "Bye", "Tschüss")

    stats = cache.get_cache_stats()
    assert stats["total_entries"] == 3
    assert stats["by_language"] == {"de": 2, "fr": 1}
    assert stats["file_size"] == 0

    cache.save()
    assert cache.get_cache_stats()["file_size"] > 0


class TestTimestamps:

    def test_zulu_suffix(self):
        parsed = parse_timestamp("2026-01-15T10:30:45Z")
        assert parsed == datetime(2026, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    def test_nanosecond_fraction(self):
        parsed = parse_timestamp("2026-01-15T10:30:45.123456789+00:00")
        assert parsed.microsecond == 123456

    @pytest.mark.parametrize("value,microsecond", [
        ("2026-01-15T10:30:45.5Z", 500000),
        ("2026-01-15T10:30:45.12Z", 120000),
        ("2026-01-15T10:30:45.1234+00:00", 123400),
    ])
    def test_short_fraction(self, value, microsecond):
        assert parse_timestamp(value).microsecond == microsecond

    def test_short_fraction_entry_is_pruned(self, cache_path):
        write_cache_file(cache_path, {"de": {"old": {"v": "Alt", "t": "2020-01-15T10:30:45.5Z"}}})
        cache = TranslationCache(cache_path)
        cache.load()

        assert cache.prune(timedelta(days=30)) == 1

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2026-01-15T10:30:45").tzinfo is not None

    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "soon", True, {}])
    def test_unusable(self, value):
        assert parse_timestamp(value) is None

    def test_entry_round_trip(self):
        entry = CacheEntry("Hallo")
        restored = CacheEntry.from_dict(entry.to_dict(), default_time=utcnow())
        assert restored == entry
