"""Name interpreter processes after the script or tool they run."""

import re
from collections.abc import Iterable

from ramdash.config import Settings
from ramdash.models import ProcessRecord, ScriptProcessDetail

_INTERPRETER = re.compile(r"python", re.IGNORECASE)
_SCRIPT_FILE = re.compile(r"([^\s/]+\.py)(?!\w)")

# Checked in order after the script-file match
KNOWN_TOOLS: tuple[tuple[str, str], ...] = (
    ("voice-mode", "voice-mode (MCP)"),
    ("ingest", "Supabase Ingestor"),
    ("uv run", "uv script"),
)


def is_interpreter(command: str) -> bool:
    """Check whether a command line belongs to a Python interpreter."""
    return bool(_INTERPRETER.search(command))


def identify_script(command: str, memory_mb: int, settings: Settings) -> str | None:
    """
    Derive a label for an interpreter process.

    Priority: the basename of a ``.py`` file, then a known tool marker, then
    (for processes above the significance threshold) the truncated command.
    Returns None when the process is not worth showing.
    """
    match = _SCRIPT_FILE.search(command)
    if match:
        return match.group(1)
    for marker, label in KNOWN_TOOLS:
        if marker in command:
            return label
    if memory_mb > settings.script_significance_mb:
        return command[: settings.script_label_width] + "..."
    return None


def collect_scripts(
    records: Iterable[ProcessRecord],
    settings: Settings,
) -> list[ScriptProcessDetail]:
    """Build the interpreter breakdown, largest first."""
    details = []
    for record in records:
        if not is_interpreter(record.command_line):
            continue
        memory_mb = record.memory_mb
        label = identify_script(record.command_line, memory_mb, settings)
        if label is None:
            continue
        # Separate floor: a labelled process can still be too small to list
        if memory_mb <= settings.script_floor_mb:
            continue
        details.append(ScriptProcessDetail(label=label, memory_mb=memory_mb, pid=record.pid))
    return sorted(details, key=lambda d: d.memory_mb, reverse=True)
