"""
Progress tracking and visualization for translation runs.

This module renders a live, per-language view of a translation run in the
terminal: one progress bar per target language, overall completion and
timing, followed by a summary of cache hits, network calls and failures.

Components:
    - LanguageStatus: Enum for language states (PENDING, RUNNING, DONE)
    - LanguageProgress: Dataclass tracking one language's unit counts
    - LanguageProgressTracker: Thread-safe tracker for all languages
    - ProgressDisplay: Rich-based terminal display

Example:
    from polytrans.utils.progress import LanguageProgressTracker, ProgressDisplay

    tracker = LanguageProgressTracker(title="README.md")
    tracker.add_languages(["de", "fr"], total_units=42)
    display = ProgressDisplay(tracker)
    display.start()
    scheduler.on_unit_done = display.on_unit_done
    result = scheduler.run(units, ["de", "fr"])
    display.stop()
    display.print_summary(result.stats)

License: MIT
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class LanguageStatus(Enum):
    """Status of one target language within a run."""
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"


@dataclass
class LanguageProgress:
    """
    Progress of one target language.

    Attributes:
        lang: Language code.
        total_units: Number of units to translate.
        done_units: Number of units resolved so far.
        status: Current status.
        start_time: When the first unit finished (None while pending).
        end_time: When the last unit finished.
    """
    lang: str
    total_units: int
    done_units: int = 0
    status: LanguageStatus = LanguageStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def percent(self) -> float:
        if self.total_units == 0:
            return 100.0
        return self.done_units / self.total_units * 100


def format_duration(duration: Optional[timedelta]) -> str:
    """Format a duration as HH:MM:SS."""
    if duration is None:
        return "00:00:00"
    total_seconds = int(duration.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class LanguageProgressTracker:
    """
    Thread-safe tracker of per-language translation progress.

    Attributes:
        title: Title displayed in the progress header.
        languages: Mapping of language code to its progress.
    """

    def __init__(self, title: str = "Translating"):
        self.title = title
        self.languages: Dict[str, LanguageProgress] = {}
        self._lock = threading.Lock()
        self._start_time: Optional[datetime] = None

    def add_language(self, lang: str, total_units: int) -> None:
        with self._lock:
            self.languages[lang] = LanguageProgress(lang=lang, total_units=total_units)

    def add_languages(self, langs: List[str], total_units: int) -> None:
        for lang in langs:
            self.add_language(lang, total_units)

    def advance(self, lang: str, done_units: int) -> None:
        """
        Record that done_units units of a language are resolved.

        Args:
            lang: Language code.
            done_units: Units resolved so far (absolute, not a delta).
        """
        with self._lock:
            progress = self.languages.get(lang)
            if progress is None:
                return
            now = datetime.now()
            if self._start_time is None:
                self._start_time = now
            if progress.start_time is None:
                progress.start_time = now
            progress.done_units = min(done_units, progress.total_units)
            if progress.done_units >= progress.total_units:
                progress.status = LanguageStatus.DONE
                progress.end_time = now
            else:
                progress.status = LanguageStatus.RUNNING

    def complete_language(self, lang: str) -> None:
        """Mark a language as finished regardless of its unit count."""
        with self._lock:
            progress = self.languages.get(lang)
            if progress is not None:
                progress.done_units = progress.total_units
                progress.status = LanguageStatus.DONE
                progress.end_time = datetime.now()

    @property
    def total_units(self) -> int:
        return sum(p.total_units for p in self.languages.values())

    @property
    def done_units(self) -> int:
        return sum(p.done_units for p in self.languages.values())

    @property
    def completed_languages(self) -> int:
        return sum(1 for p in self.languages.values() if p.status == LanguageStatus.DONE)

    @property
    def progress_percent(self) -> float:
        """Overall progress over all languages as a percentage."""
        total = self.total_units
        if total == 0:
            return 100.0 if self.languages else 0.0
        return self.done_units / total * 100

    @property
    def elapsed_time(self) -> Optional[timedelta]:
        if self._start_time is None:
            return None
        return datetime.now() - self._start_time

    def snapshot(self) -> List[LanguageProgress]:
        """Copy of every language's progress, in insertion order."""
        with self._lock:
            return [
                LanguageProgress(
                    lang=p.lang,
                    total_units=p.total_units,
                    done_units=p.done_units,
                    status=p.status,
                    start_time=p.start_time,
                    end_time=p.end_time,
                )
                for p in self.languages.values()
            ]


class ProgressDisplay:
    """
    Rich-based terminal display of a translation run.

    The display is refreshed from the scheduler's progress callback, which
    runs on the thread that drains the run, so no extra threads are used.
    """

    STATUS_STYLES = {
        LanguageStatus.PENDING: ("○", "dim"),
        LanguageStatus.RUNNING: ("●", "yellow"),
        LanguageStatus.DONE: ("✓", "green"),
    }

    BAR_WIDTH = 40

    def __init__(
        self,
        tracker: LanguageProgressTracker,
        console: Optional[Console] = None,
        refresh_rate: float = 0.5
    ):
        self.tracker = tracker
        self.console = console or Console()
        self.refresh_rate = refresh_rate
        self._live: Optional[Live] = None

    def _build_bar(self, percent: float) -> str:
        filled = int(self.BAR_WIDTH * percent / 100)
        return "█" * filled + "░" * (self.BAR_WIDTH - filled)

    def _build_table(self) -> Table:
        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Language", style="cyan", no_wrap=True, width=10)
        table.add_column("Progress", no_wrap=True)
        table.add_column("Units", justify="right", width=12)
        table.add_column("Status", justify="center", width=10)

        for progress in self.tracker.snapshot():
            icon, style = self.STATUS_STYLES[progress.status]
            table.add_row(
                progress.lang,
                f"[blue]{self._build_bar(progress.percent)}[/blue] {progress.percent:5.1f}%",
                f"{progress.done_units}/{progress.total_units}",
                Text(f"{icon} {progress.status.value.title()}", style=style),
            )
        return table

    def _build_panel(self) -> Panel:
        header = "\n".join([
            f"[bold]{self.tracker.title}[/bold]",
            f"Languages: {self.tracker.completed_languages}/{len(self.tracker.languages)} | "
            f"Units: {self.tracker.done_units}/{self.tracker.total_units} "
            f"({self.tracker.progress_percent:.1f}%) | "
            f"Elapsed: {format_duration(self.tracker.elapsed_time)}",
            "",
        ])
        return Panel(Group(Text.from_markup(header), self._build_table()), border_style="blue")

    def start(self) -> None:
        """Start the live display."""
        self._live = Live(
            self._build_panel(),
            console=self.console,
            refresh_per_second=1 / self.refresh_rate,
            transient=False
        )
        self._live.start()

    def update(self) -> None:
        if self._live:
            self._live.update(self._build_panel())

    def on_unit_done(self, lang: str, done: int, total: int) -> None:
        """Scheduler progress callback."""
        self.tracker.advance(lang, done)
        self.update()

    def stop(self) -> None:
        """Stop the live display."""
        if self._live:
            self._live.update(self._build_panel())
            self._live.stop()
            self._live = None

    def print_summary(self, stats: Dict[str, float], duration: Optional[float] = None) -> None:
        """
        Print the run summary.

        Args:
            stats: Run counters as returned in TranslationRunResult.stats.
            duration: Run duration in seconds; defaults to the tracked time.
        """
        elapsed = (
            timedelta(seconds=duration) if duration is not None else self.tracker.elapsed_time
        )

        summary = Table(show_header=False, box=None)
        summary.add_column("Metric", style="bold")
        summary.add_column("Value")
        summary.add_row("Total Time", format_duration(elapsed))
        summary.add_row(
            "Cache Hits",
            f"[blue]{stats.get('cache_hits', 0)}[/blue] ({stats.get('cache_percent', 0.0):.2f}%)"
        )
        summary.add_row(
            "Network Calls",
            f"[yellow]{stats.get('net_calls', 0)}[/yellow] ({stats.get('net_percent', 0.0):.2f}%)"
        )
        failed = stats.get("failed_calls", 0)
        if failed:
            summary.add_row("Failures", f"[red]{failed}[/red]")

        self.console.print(Panel(
            summary,
            title=f"[bold]{self.tracker.title} Complete[/bold]",
            border_style="green" if not failed else "yellow"
        ))
