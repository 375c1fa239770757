"""Parsers for the raw text that the collaborators hand over.

Malformed lines are an everyday condition when scraping live process text, so
every parser here skips them silently instead of raising.
"""

import re

from ramdash.models import ProcessRecord

# `ps aux` columns: USER PID %CPU %MEM VSZ RSS TT STAT STARTED TIME COMMAND
PID_FIELD = 1
RSS_FIELD = 5
COMMAND_FIELD = 10
MIN_FIELDS = COMMAND_FIELD + 1

GIGABYTE = 1024**3

_VM_STAT_LINE = re.compile(r"^(?P<key>[^:]+):\s+(?P<pages>\d+)\.?\s*$")

WINDOW_SEPARATOR = ", "
TAB_SEPARATOR = "|||"


def parse_process_line(line: str) -> ProcessRecord | None:
    """
    Parse one line of `ps aux` output.

    Returns None for header, blank and truncated lines. The command is every
    field from COMMAND_FIELD onward joined by single spaces, since commands
    carry spaces of their own.
    """
    parts = line.split()
    if len(parts) < MIN_FIELDS:
        return None
    try:
        pid = int(parts[PID_FIELD])
        rss_kb = int(parts[RSS_FIELD])
    except ValueError:
        return None
    if pid < 0 or rss_kb < 0:
        return None
    return ProcessRecord(
        pid=pid,
        rss_kb=rss_kb,
        command_line=" ".join(parts[COMMAND_FIELD:]),
    )


def parse_process_table(text: str) -> list[ProcessRecord]:
    """Parse a whole process-table snapshot, keeping line order."""
    records = []
    for line in text.splitlines():
        record = parse_process_line(line)
        if record is not None:
            records.append(record)
    return records


def parse_vm_stat(text: str, page_size: int) -> dict[str, float]:
    """
    Parse `vm_stat` output into gigabytes per key.

    Lines look like ``Pages wired down:     123456.``; the banner line and
    anything else without a page count is skipped.
    """
    stats: dict[str, float] = {}
    for line in text.splitlines():
        match = _VM_STAT_LINE.match(line.strip())
        if match is None:
            continue
        stats[match.group("key").strip()] = int(match.group("pages")) * page_size / GIGABYTE
    return stats


def parse_window_titles(text: str) -> list[str]:
    """Split an AppleScript list of window names."""
    return [title for title in text.strip().split(WINDOW_SEPARATOR) if title]


def parse_tab_listing(text: str) -> list[tuple[str, str]]:
    """Parse ``title|||url`` lines into (title, url) pairs."""
    pairs = []
    for line in text.strip().splitlines():
        if TAB_SEPARATOR not in line:
            continue
        title, url = line.split(TAB_SEPARATOR, 1)
        pairs.append((title, url.split(TAB_SEPARATOR, 1)[0]))
    return pairs
