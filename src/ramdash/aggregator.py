"""One sampling pass: raw host text in, SystemSnapshot out."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import TypeVar

from ramdash.classifier import DEFAULT_RULES, Rule, build_application_groups
from ramdash.config import Settings
from ramdash.correlate import correlate_tabs, distribute_workspaces, renderer_memory
from ramdash.models import (
    ProcessRecord,
    ScriptProcessDetail,
    SessionDetail,
    SystemSnapshot,
    TabDetail,
    WorkspaceDetail,
    round_half_up,
)
from ramdash.parsing import (
    GIGABYTE,
    parse_process_table,
    parse_tab_listing,
    parse_vm_stat,
    parse_window_titles,
)
from ramdash.scripts import collect_scripts
from ramdash.sessions import collect_sessions
from ramdash.sources import RawSource, SourceUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

USED_MEMORY_KEYS = (
    "Pages wired down",
    "Pages active",
    "Pages occupied by compressor",
)


class MemoryAggregator:
    """
    Builds a SystemSnapshot from a RawSource.

    The process table is read once per pass and shared read-only. The four
    breakdowns run concurrently, each behind its own boundary: whatever goes
    wrong in one of them turns into an empty list for that breakdown alone.
    sample() does not raise for source failures.
    """

    def __init__(
        self,
        source: RawSource,
        settings: Settings | None = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the MemoryAggregator.

        Args:
            source: Where raw process, VM, window and tab text comes from.
            settings: Thresholds; defaults to Settings().
            rules: Application classification rules in priority order.
            clock: Timestamp provider for snapshots.
        """
        self._source = source
        self._settings = settings or Settings()
        self._rules = tuple(rules)
        self._clock = clock

    @property
    def settings(self) -> Settings:
        """Get the active settings."""
        return self._settings

    async def sample(self) -> SystemSnapshot:
        """Take one snapshot of the host."""
        (total_gb, used_gb, free_gb), records = await asyncio.gather(
            self._memory_totals(),
            self._process_records(),
        )
        apps = build_application_groups(records, self._rules)

        scripts, sessions, workspaces, tabs = await asyncio.gather(
            self._isolated("scripts", self._scripts(records)),
            self._isolated("sessions", self._sessions(records)),
            self._isolated("workspaces", self._workspaces(records)),
            self._isolated("tabs", self._tabs(records)),
        )

        return SystemSnapshot(
            total_gb=total_gb,
            used_gb=used_gb,
            free_gb=free_gb,
            apps=apps,
            tabs=tabs,
            scripts=scripts,
            sessions=sessions,
            workspaces=workspaces,
            sampled_at=self._clock(),
        )

    def sample_sync(self) -> SystemSnapshot:
        """Take one snapshot from a thread that has no running event loop."""
        return asyncio.run(self.sample())

    async def _isolated(self, name: str, work: Awaitable[list[T]]) -> list[T]:
        try:
            return await work
        except Exception:
            logger.debug("%s breakdown unavailable", name, exc_info=True)
            return []

    async def _memory_totals(self) -> tuple[float, float, float]:
        """Total, used and free memory in gigabytes; zeros when unreadable."""
        try:
            total_bytes, vm_text = await asyncio.gather(
                self._source.total_memory_bytes(),
                self._source.vm_stat(),
            )
        except Exception:
            logger.debug("memory totals unavailable", exc_info=True)
            return 0, 0.0, 0.0

        total = total_bytes / GIGABYTE
        stats = parse_vm_stat(vm_text, self._settings.page_size)
        used = sum(stats.get(key, 0.0) for key in USED_MEMORY_KEYS)
        free = max(total - used, 0.0)
        return round_half_up(total), round_half_up(used * 10) / 10, round_half_up(free * 10) / 10

    async def _process_records(self) -> list[ProcessRecord]:
        try:
            text = await self._source.process_table()
        except Exception:
            logger.debug("process table unavailable", exc_info=True)
            return []
        return parse_process_table(text)

    async def _scripts(self, records: list[ProcessRecord]) -> list[ScriptProcessDetail]:
        return collect_scripts(records, self._settings)

    async def _sessions(self, records: list[ProcessRecord]) -> list[SessionDetail]:
        return await collect_sessions(records, self._source.working_directory, self._settings)

    async def _workspaces(self, records: list[ProcessRecord]) -> list[WorkspaceDetail]:
        try:
            titles = parse_window_titles(await self._source.window_titles())
        except SourceUnavailable:
            logger.debug("editor windows unavailable", exc_info=True)
            titles = None
        return distribute_workspaces(records, titles, self._settings)

    async def _tabs(self, records: list[ProcessRecord]) -> list[TabDetail]:
        pairs = parse_tab_listing(await self._source.tab_listing())
        return correlate_tabs(pairs, renderer_memory(records), self._settings)
