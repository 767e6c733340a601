"""
Utility modules for polytrans.

This package contains the terminal progress reporting used by the
command-line script.

License: MIT
"""

from polytrans.utils.progress import (
    LanguageStatus,
    LanguageProgress,
    LanguageProgressTracker,
    ProgressDisplay,
)

__all__ = [
    "LanguageStatus",
    "LanguageProgress",
    "LanguageProgressTracker",
    "ProgressDisplay",
]
