"""Thresholds and constants for ramdash."""

import getpass
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace

logger = logging.getLogger(__name__)

ENV_PREFIX = "RAMDASH_"


def _default_ignored_segments() -> tuple[str, ...]:
    segments = ["Users", "home"]
    try:
        segments.append(getpass.getuser())
    except (KeyError, OSError):
        pass  # No passwd entry for this uid
    return tuple(segments)


@dataclass(slots=True, frozen=True)
class Settings:
    """Every tunable number the sampling pipeline uses."""

    # Interpreter scripts
    script_significance_mb: int = 100  # Unlabelled processes need this much
    script_floor_mb: int = 10  # Anything at or below is dropped
    script_label_width: int = 40

    # Agent sessions
    session_floor_mb: int = 50
    session_primary_mb: int = 500
    session_family: str = "claude"
    ignored_path_segments: tuple[str, ...] = field(default_factory=_default_ignored_segments)
    home_label: str = "Home"

    # Editor workspaces
    workspace_total_label: str = "VS Code (total)"

    # Browser tabs
    tab_title_width: int = 60
    tab_estimate_min_mb: int = 50
    tab_estimate_max_mb: int = 150

    # Host
    page_size: int = 16384  # Bytes per VM page on Apple silicon
    poll_rate: float = 3.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings with numeric overrides from ``RAMDASH_*`` variables.

        ``RAMDASH_SESSION_FLOOR_MB=80`` overrides ``session_floor_mb``.
        Values that do not parse as the field's type are ignored.
        """
        environ = os.environ if environ is None else environ
        settings = cls()
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            current = getattr(settings, f.name)
            if not isinstance(current, (int, float)):
                continue
            try:
                overrides[f.name] = type(current)(raw)
            except ValueError:
                logger.debug("Ignoring %s%s=%r", ENV_PREFIX, f.name.upper(), raw)
        return replace(settings, **overrides) if overrides else settings
