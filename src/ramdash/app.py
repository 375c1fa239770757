"""ramdash - Textual memory dashboard."""

import argparse
import logging
import sys
from queue import Empty, Queue

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Grid
from textual.logging import TextualHandler
from textual.widgets import DataTable, Footer, Static

from ramdash.aggregator import MemoryAggregator
from ramdash.config import Settings
from ramdash.models import SystemSnapshot, round_half_up
from ramdash.monitor import SnapshotMonitor
from ramdash.sources import HostSource

STATUS_STYLES = {"OK": "green", "WARNING": "yellow", "CRITICAL": "red"}

APP_MIN_MB = 50
LEGEND_MIN_MB = 100
BAR_WIDTH = 40
MAIN_SESSION_MB = 200
MAX_TABS = 15


def format_mb(mb: float) -> str:
    """Format megabytes, switching to gigabytes from 1024 MB."""
    if mb >= 1024:
        return f"{mb / 1024:.1f} GB"
    return f"{mb:.0f} MB"


def app_bar(snapshot: SystemSnapshot, width: int = BAR_WIDTH) -> str:
    """
    Stacked bar of application memory against total memory, with a legend.

    Only applications above LEGEND_MIN_MB get a segment.
    """
    total_mb = snapshot.total_gb * 1024
    apps = [app for app in snapshot.apps if app.memory_mb > LEGEND_MIN_MB]
    if total_mb <= 0 or not apps:
        return ""
    segments = []
    used = 0
    for app in apps:
        length = min(round_half_up(app.memory_mb / total_mb * width), width - used)
        if length <= 0:
            continue
        used += length
        segments.append(f"[{app.color}]" + "█" * length + "[/]")
    bar = "".join(segments) + "[dim]░[/dim]" * (width - used)
    legend = "  ".join(f"[{app.color}]■[/] {app.name}" for app in apps)
    return f"Apps\\[{bar}]\n{legend}"


def memory_status(snapshot: SystemSnapshot) -> str:
    """Classify memory pressure as OK, WARNING or CRITICAL."""
    percent = round(snapshot.used_percent)
    if percent > 90:
        return "CRITICAL"
    if percent > 75:
        return "WARNING"
    return "OK"


def build_tips(snapshot: SystemSnapshot) -> list[str]:
    """Suggestions for freeing memory, most specific first."""
    tips = []
    chrome = next((app for app in snapshot.apps if app.name == "Chrome"), None)
    if chrome is not None and chrome.memory_mb > 10000:
        tips.append(f"Chrome using {format_mb(chrome.memory_mb)} - consider closing tabs")

    main_sessions = sum(1 for s in snapshot.sessions if s.memory_mb > MAIN_SESSION_MB)
    if main_sessions > 3:
        tips.append(f"{main_sessions} Claude Code sessions - consider closing some")

    big_script = next((p for p in snapshot.scripts if p.memory_mb > 1000), None)
    if big_script is not None:
        tips.append(f'Python script "{big_script.label}" using {format_mb(big_script.memory_mb)}')

    percent = round(snapshot.used_percent)
    if percent > 80:
        tips.append(f"Memory pressure high ({percent}%) - close unused apps")

    if not tips:
        tips.append("Memory usage looks healthy!")
    return tips


class HeaderStats(Static):
    """Header widget showing used, free and total memory."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__("Loading memory info...", *args, **kwargs)

    def update_stats(self, snapshot: SystemSnapshot) -> None:
        """Update the statistics from a system snapshot."""
        status = memory_status(snapshot)
        style = STATUS_STYLES[status]
        bar_len = min(int(snapshot.used_percent / 5), 20)
        bar = "[cyan]█[/cyan]" * bar_len + "[dim]░[/dim]" * (20 - bar_len)
        text = (
            f"Mem\\[{bar}] {snapshot.used_gb:.1f}G/{snapshot.total_gb}G  "
            f"free {snapshot.free_gb:.1f}G  [bold {style}]{status}[/]  "
            f"updated {snapshot.sampled_at:%H:%M:%S}"
        )
        apps = app_bar(snapshot)
        self.update(f"{text}\n{apps}" if apps else text)


class DetailTable(Container):
    """A titled table for one breakdown."""

    DEFAULT_CSS = """
    DetailTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, title: str, columns: list[str], *args, **kwargs) -> None:
        """Initialize DetailTable."""
        super().__init__(*args, **kwargs)
        self.border_title = title
        self._columns = columns

    def compose(self) -> ComposeResult:
        """Compose the table."""
        yield DataTable(cursor_type="row", zebra_stripes=True)

    def on_mount(self) -> None:
        """Add the columns when mounted."""
        self.query_one(DataTable).add_columns(*self._columns)

    def show(self, rows: list[tuple], summary: str = "", empty: str = "") -> None:
        """Replace the table contents, or show ``empty`` in a single row when there are none."""
        table = self.query_one(DataTable)
        table.clear()
        if not rows and empty:
            rows = [(f"[dim]{empty}[/dim]",) + ("",) * (len(self._columns) - 1)]
        for row in rows:
            table.add_row(*row)
        self.border_subtitle = summary


class RamdashApp(App):
    """Main ramdash application."""

    TITLE = "ramdash"
    SUB_TITLE = "RAM Dashboard"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
    }

    #panels {
        grid-size: 2 3;
        height: 1fr;
    }

    #tips {
        height: auto;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(self, aggregator: MemoryAggregator | None = None, poll_rate: float = 3.0) -> None:
        """Initialize the RamdashApp."""
        super().__init__()
        self._aggregator = aggregator or MemoryAggregator(HostSource())
        self._update_queue: Queue[SystemSnapshot] = Queue()
        self._monitor = SnapshotMonitor(self._aggregator, self._update_queue, poll_rate=poll_rate)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield Grid(
            DetailTable("Applications", ["App", "Memory", "Processes"], id="apps"),
            DetailTable("Claude Code sessions", ["Project", "Role", "PID", "Memory"], id="sessions"),
            DetailTable("Python processes", ["Script", "PID", "Memory"], id="scripts"),
            DetailTable("VS Code workspaces", ["Workspace", "Processes", "Memory"], id="workspaces"),
            DetailTable("Chrome tabs", ["Tab", "Memory"], id="tabs"),
            Static(id="tips"),
            id="panels",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Start the snapshot monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.render_snapshot(snapshot)

    def render_snapshot(self, snapshot: SystemSnapshot) -> None:
        """Update every widget from one snapshot."""
        self.query_one(HeaderStats).update_stats(snapshot)

        apps = [app for app in snapshot.apps if app.memory_mb > APP_MIN_MB]
        self.query_one("#apps", DetailTable).show(
            [(f"[{app.color}]■[/] {app.name}", format_mb(app.memory_mb), str(app.process_count)) for app in apps]
        )

        sessions_total = sum(s.memory_mb for s in snapshot.sessions)
        main_sessions = sum(1 for s in snapshot.sessions if s.memory_mb > MAIN_SESSION_MB)
        self.query_one("#sessions", DetailTable).show(
            [
                (
                    escape(s.project_label),
                    "subagent" if s.is_subordinate else "main",
                    str(s.pid),
                    format_mb(s.memory_mb),
                )
                for s in snapshot.sessions
            ],
            f"{main_sessions} main, {format_mb(sessions_total)}",
            empty="No active sessions",
        )

        scripts_total = sum(p.memory_mb for p in snapshot.scripts)
        self.query_one("#scripts", DetailTable).show(
            [(escape(p.label), str(p.pid), format_mb(p.memory_mb)) for p in snapshot.scripts],
            f"{len(snapshot.scripts)} processes, {format_mb(scripts_total)}",
            empty="No Python processes",
        )

        workspaces_total = sum(w.memory_mb for w in snapshot.workspaces)
        self.query_one("#workspaces", DetailTable).show(
            [(escape(w.path), str(w.process_count), format_mb(w.memory_mb)) for w in snapshot.workspaces],
            f"{len(snapshot.workspaces)} workspaces, {format_mb(workspaces_total)}",
            empty="VS Code not running",
        )

        tabs_total = sum(t.memory_mb for t in snapshot.tabs)
        self.query_one("#tabs", DetailTable).show(
            [
                (escape(t.title), f"~{t.memory_mb} MB" if t.estimated else f"{t.memory_mb} MB")
                for t in snapshot.tabs[:MAX_TABS]
            ],
            f"{len(snapshot.tabs)} tabs, {format_mb(tabs_total)}",
        )

        self.query_one("#tips", Static).update("\n".join(f"• {tip}" for tip in build_tips(snapshot)))

    def action_refresh(self) -> None:
        """Sample again without waiting for the next poll."""
        self._monitor.refresh()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ramdash command."""
    parser = argparse.ArgumentParser(prog="ramdash", description="Local memory dashboard")
    parser.add_argument("--json", action="store_true", help="print one snapshot as JSON and exit")
    parser.add_argument("--interval", type=float, default=None, help="seconds between samples")
    parser.add_argument("--verbose", action="store_true", help="log source failures")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    settings = Settings.from_env()
    aggregator = MemoryAggregator(HostSource(), settings)

    if args.json:
        logging.basicConfig(level=level)
        snapshot = aggregator.sample_sync()
        sys.stdout.write(snapshot.to_json(indent=2) + "\n")
        return

    logging.basicConfig(level=level, handlers=[TextualHandler()])
    poll_rate = args.interval if args.interval is not None else settings.poll_rate
    app = RamdashApp(aggregator, poll_rate=poll_rate)
    app.run()


if __name__ == "__main__":
    main()
