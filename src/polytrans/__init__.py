"""
Polytrans: cached, concurrent multi-language translation.

This package translates batches of text units (message strings, lines of
prose, leaf values of structured documents) into many target languages by
delegating the actual translation to an external engine, while avoiding
redundant work through a persistent cache and bounding how many engine
calls run at the same time.

Modules:
    config: Configuration settings and logging setup.
    core: Shared helpers for cache-key normalization and connectivity.
    translation: Substring protection, cache, engine invocation and scheduling.
    utils: Terminal progress reporting.

License: MIT
"""

__version__ = "1.0.0"
