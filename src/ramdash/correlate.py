"""Spread process-level memory across windows and tabs.

Neither editor windows nor browser tabs map onto processes in the process
table, so both breakdowns are approximations: workspaces get an even share of
the editor's total, tabs borrow renderer sizes by position.
"""

import random
import re
import zlib
from collections.abc import Iterable, Sequence

from ramdash.config import Settings
from ramdash.models import (
    ProcessRecord,
    TabDetail,
    WorkspaceDetail,
    kb_to_mb,
    round_half_up,
)

_WORKSPACE_HELPER = re.compile(r"Code Helper|Visual Studio Code")
_TAB_RENDERER = "Google Chrome Helper (Renderer)"
_WINDOW_PATH = re.compile(r"— ([^\[]+)")


def is_workspace_helper(command: str) -> bool:
    """Check whether a command line belongs to the editor."""
    return bool(_WORKSPACE_HELPER.search(command))


def is_tab_renderer(command: str) -> bool:
    """Check whether a command line is a browser renderer."""
    return _TAB_RENDERER in command


def workspace_path(title: str) -> str:
    """Pull the folder name out of an editor window title."""
    match = _WINDOW_PATH.search(title)
    return match.group(1).strip() if match else title


def distribute_workspaces(
    records: Iterable[ProcessRecord],
    titles: Sequence[str] | None,
    settings: Settings,
) -> list[WorkspaceDetail]:
    """
    Split the editor's memory evenly across its windows.

    ``titles`` is None when windows could not be enumerated; the whole
    aggregate is then reported as one entry. Windows resolving to the same
    path share one entry.
    """
    total_kb = 0
    total_processes = 0
    for record in records:
        if is_workspace_helper(record.command_line):
            total_kb += record.rss_kb
            total_processes += 1
    total_mb = kb_to_mb(total_kb)

    if titles is None:
        return [
            WorkspaceDetail(
                path=settings.workspace_total_label,
                memory_mb=total_mb,
                process_count=total_processes,
            )
        ]

    if not titles:
        return []
    memory_share = round_half_up(total_mb / len(titles))
    process_share = round_half_up(total_processes / len(titles))

    workspaces: dict[str, WorkspaceDetail] = {}
    for title in titles:
        path = workspace_path(title)
        workspaces[path] = WorkspaceDetail(
            path=path,
            memory_mb=memory_share,
            process_count=process_share,
        )
    return sorted(workspaces.values(), key=lambda w: w.memory_mb, reverse=True)


def renderer_memory(records: Iterable[ProcessRecord]) -> list[int]:
    """Renderer sizes in megabytes, largest first."""
    return sorted(
        (record.memory_mb for record in records if is_tab_renderer(record.command_line)),
        reverse=True,
    )


def estimate_tab_memory(title: str, url: str, settings: Settings) -> int:
    """
    Plausible memory for a tab with no renderer size.

    Seeded from the tab itself so the same tab gets the same figure on every
    sample.
    """
    seed = zlib.crc32(f"{title}\n{url}".encode("utf-8"))
    rng = random.Random(seed)
    return rng.randint(settings.tab_estimate_min_mb, settings.tab_estimate_max_mb)


def correlate_tabs(
    pairs: Sequence[tuple[str, str]],
    memories: Sequence[int],
    settings: Settings,
) -> list[TabDetail]:
    """
    Pair tabs with renderer sizes by position.

    Tab N gets the Nth largest renderer. Titles are never matched against
    processes, so the pairing drifts whenever renderer order differs from tab
    order. Tabs past the end of ``memories`` get an estimate instead of zero.
    """
    tabs = []
    for index, (title, url) in enumerate(pairs):
        memory_mb = memories[index] if index < len(memories) else 0
        estimated = memory_mb <= 0
        if estimated:
            memory_mb = estimate_tab_memory(title, url, settings)
        tabs.append(
            TabDetail(
                title=title[: settings.tab_title_width] or "Unknown",
                url=url,
                memory_mb=memory_mb,
                estimated=estimated,
            )
        )
    return sorted(tabs, key=lambda t: t.memory_mb, reverse=True)
