"""Correlate agent sessions with the project directory they run in."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from ramdash.config import Settings
from ramdash.models import ProcessRecord, SessionDetail
from ramdash.sources import SourceUnavailable

logger = logging.getLogger(__name__)

WorkingDirectoryLookup = Callable[[int], Awaitable[str]]


def is_session_process(command: str, settings: Settings) -> bool:
    """Check whether a command line belongs to the agent family (case-sensitive)."""
    return settings.session_family in command


def project_label(working_directory: str, settings: Settings) -> str:
    """Last informative segment of a path, or the home label."""
    segments = [
        segment
        for segment in working_directory.split("/")
        if segment and segment not in settings.ignored_path_segments
    ]
    return segments[-1] if segments else settings.home_label


def is_subordinate(memory_mb: int, command: str, settings: Settings) -> bool:
    """Guess whether a session process is a helper of a larger one."""
    return memory_mb < settings.session_primary_mb and settings.session_family in command


async def _resolve_directory(lookup: WorkingDirectoryLookup, pid: int) -> str:
    try:
        return (await lookup(pid)).strip()
    except SourceUnavailable:
        return ""
    except Exception:
        logger.debug("cwd lookup for %d failed", pid, exc_info=True)
        return ""


async def collect_sessions(
    records: Iterable[ProcessRecord],
    lookup: WorkingDirectoryLookup,
    settings: Settings,
) -> list[SessionDetail]:
    """
    Build the session breakdown, largest first.

    Small processes are dropped before any lookup is issued. Lookups run
    concurrently; one that fails leaves its session with an empty directory.
    """
    candidates = [
        record
        for record in records
        if is_session_process(record.command_line, settings)
        and record.memory_mb >= settings.session_floor_mb
    ]
    directories = await asyncio.gather(
        *(_resolve_directory(lookup, record.pid) for record in candidates)
    )

    sessions = [
        SessionDetail(
            working_directory=directory,
            project_label=project_label(directory, settings),
            memory_mb=record.memory_mb,
            pid=record.pid,
            is_subordinate=is_subordinate(record.memory_mb, record.command_line, settings),
        )
        for record, directory in zip(candidates, directories)
    ]
    return sorted(sessions, key=lambda s: s.memory_mb, reverse=True)
