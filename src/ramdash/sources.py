"""Collaborators that produce the raw text the pipeline consumes."""

import asyncio
from typing import Protocol

import psutil

WINDOW_SCRIPT = 'tell application "Visual Studio Code" to return name of every window'

TAB_SCRIPT = """
tell application "Google Chrome"
  set tabList to ""
  repeat with w from 1 to (count of windows)
    repeat with t from 1 to (count of tabs of window w)
      set tabTitle to title of tab t of window w
      set tabURL to URL of tab t of window w
      set tabList to tabList & tabTitle & "|||" & tabURL & "\\n"
    end repeat
  end repeat
  return tabList
end tell
"""


class SourceUnavailable(Exception):
    """A raw data source could not be read at all."""


class RawSource(Protocol):
    """Everything the aggregator needs from the host, as raw values."""

    async def process_table(self) -> str:
        """Full `ps aux` style listing, one process per line."""
        ...

    async def vm_stat(self) -> str:
        """`vm_stat` style ``key: pages`` block."""
        ...

    async def total_memory_bytes(self) -> int:
        """Installed physical memory."""
        ...

    async def working_directory(self, pid: int) -> str:
        """Current directory of one process, possibly empty."""
        ...

    async def window_titles(self) -> str:
        """Editor window names as an AppleScript list."""
        ...

    async def tab_listing(self) -> str:
        """Browser tabs as ``title|||url`` lines."""
        ...


async def run_command(*argv: str) -> str:
    """
    Run a command and return its stdout.

    Raises SourceUnavailable when the program is missing, cannot be started
    or exits non-zero.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise SourceUnavailable(f"{argv[0]}: {e}") from e
    stdout, _ = await process.communicate()
    if process.returncode != 0:
        raise SourceUnavailable(f"{argv[0]} exited with status {process.returncode}")
    return stdout.decode("utf-8", errors="replace")


class HostSource:
    """
    Reads the local macOS host.

    Process and VM listings come from `ps` and `vm_stat`, window and tab
    names from AppleScript. Physical memory and working directories come from
    psutil.
    """

    async def process_table(self) -> str:
        return await run_command("ps", "aux")

    async def vm_stat(self) -> str:
        return await run_command("vm_stat")

    async def total_memory_bytes(self) -> int:
        return psutil.virtual_memory().total

    async def working_directory(self, pid: int) -> str:
        try:
            return await asyncio.to_thread(lambda: psutil.Process(pid).cwd())
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
            raise SourceUnavailable(f"cwd of {pid}: {e}") from e

    async def window_titles(self) -> str:
        return await run_command("osascript", "-e", WINDOW_SCRIPT)

    async def tab_listing(self) -> str:
        return await run_command("osascript", "-e", TAB_SCRIPT)
