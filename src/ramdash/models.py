"""Data models for ramdash."""

import json
import math
from dataclasses import asdict, dataclass
from datetime import datetime


def round_half_up(value: float) -> int:
    """Round a non-negative number to the nearest integer, halves going up."""
    return int(math.floor(max(value, 0) + 0.5))


def kb_to_mb(kb: float) -> int:
    """Convert kilobytes to whole megabytes."""
    return round_half_up(kb / 1024)


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """One row of a process-table snapshot."""

    pid: int
    rss_kb: int
    command_line: str

    @property
    def memory_mb(self) -> int:
        """Resident memory in whole megabytes."""
        return kb_to_mb(self.rss_kb)


@dataclass(slots=True, frozen=True)
class ApplicationGroup:
    """Resident memory attributed to one named application."""

    name: str
    memory_mb: int
    process_count: int
    color: str  # '#rrggbb'


@dataclass(slots=True, frozen=True)
class ScriptProcessDetail:
    """A significant interpreter process."""

    label: str
    memory_mb: int
    pid: int


@dataclass(slots=True, frozen=True)
class SessionDetail:
    """An agent session and the directory it runs in.

    ``is_subordinate`` is a heuristic (small and still named after the agent),
    not a real parent/child relationship.
    """

    working_directory: str
    project_label: str
    memory_mb: int
    pid: int
    is_subordinate: bool


@dataclass(slots=True, frozen=True)
class WorkspaceDetail:
    """An editor window with its share of the editor's memory.

    Shares are the aggregate divided evenly across windows and rounded one by
    one, so they need not add back up to the aggregate.
    """

    path: str
    memory_mb: int
    process_count: int


@dataclass(slots=True, frozen=True)
class TabDetail:
    """A browser tab with memory correlated by position.

    ``estimated`` marks tabs with no renderer size to borrow, whose memory is
    a plausible stand-in rather than a measurement.
    """

    title: str
    url: str
    memory_mb: int
    estimated: bool = False


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Everything one sampling pass produces."""

    total_gb: float
    used_gb: float
    free_gb: float
    apps: list[ApplicationGroup]
    tabs: list[TabDetail]
    scripts: list[ScriptProcessDetail]
    sessions: list[SessionDetail]
    workspaces: list[WorkspaceDetail]
    sampled_at: datetime

    @property
    def used_percent(self) -> float:
        """Used memory as a percentage of total, 0.0 when total is unknown."""
        if self.total_gb <= 0:
            return 0.0
        return self.used_gb / self.total_gb * 100

    def to_dict(self) -> dict:
        """Flat JSON-compatible representation."""
        data = asdict(self)
        data["sampled_at"] = self.sampled_at.isoformat()
        return data

    def to_json(self, **kwargs) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), **kwargs)
