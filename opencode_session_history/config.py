"""
Configuration for session history search and transcript reconstruction.

Values come from dataclass defaults, then an optional YAML settings file,
then environment variables:

```yaml
# ~/.config/opencode/history.yaml
db_path: ~/.local/share/opencode/opencode.db
host_cli: opencode
host_cli_timeout: 5
search:
  since_hours: 720
  snippet_length: 300
transcript:
  max_chars_per_entry: 1000
```
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "opencode" / "history.yaml"

# Environment variables
ENV_DB_PATH = "OPENCODE_DB_PATH"
ENV_SINCE_HOURS = "OPENCODE_HISTORY_SINCE_HOURS"
ENV_SETTINGS_PATH = "OPENCODE_HISTORY_CONFIG"


@dataclass
class SearchConfig:
    """Limits and filters for session search."""

    roles: tuple[str, ...] = ("user", "assistant")
    default_sessions: int = 6
    max_sessions: int = 12
    snippets_per_session: int = 2
    snippet_length: int = 220
    since_hours: int = 24 * 180
    # Next-step suggestion block
    suggested_calls: int = 3
    suggested_transcript_limit: int = 60
    question_options: int = 8
    option_label_length: int = 24


@dataclass
class TranscriptConfig:
    """Limits and filters for transcript reconstruction."""

    roles: tuple[str, ...] = ("user", "assistant")
    default_limit: int = 80
    max_limit: int = 120
    max_chars_per_entry: int = 600
    include_empty: bool = False


@dataclass
class HistoryConfig:
    """Top-level configuration.

    Attributes:
        db_path: Explicit database path. When unset, the path is resolved
                 once per process (environment, host CLI, fallback).
        host_cli: Host executable asked for the canonical database path.
        host_cli_timeout: Seconds to wait for the host CLI before giving up.
        search: Session search settings.
        transcript: Transcript settings.
    """

    db_path: Path | None = None
    host_cli: str = "opencode"
    host_cli_timeout: float = 5.0
    search: SearchConfig = field(default_factory=SearchConfig)
    transcript: TranscriptConfig = field(default_factory=TranscriptConfig)

    @classmethod
    def load(cls, settings_path: Path | None = None) -> HistoryConfig:
        """Create config from the settings file and environment variables."""
        if settings_path is None:
            env_path = os.environ.get(ENV_SETTINGS_PATH)
            settings_path = Path(env_path).expanduser() if env_path else DEFAULT_SETTINGS_PATH

        config = cls.from_dict(_load_settings(settings_path))

        since_hours = os.environ.get(ENV_SINCE_HOURS)
        if since_hours:
            try:
                config.search.since_hours = int(since_hours)
            except ValueError:
                logger.warning(f"Ignoring non-integer {ENV_SINCE_HOURS}={since_hours!r}")

        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryConfig:
        """Build config from a settings mapping, ignoring unknown keys."""
        db_path = data.get("db_path")
        timeout = data.get("host_cli_timeout", 5.0)
        try:
            timeout = float(timeout)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Ignoring non-numeric host_cli_timeout={timeout!r}")
            timeout = 5.0

        return cls(
            db_path=Path(db_path).expanduser() if db_path else None,
            host_cli=str(data.get("host_cli") or "opencode"),
            host_cli_timeout=timeout,
            search=_build_section(SearchConfig, data.get("search")),
            transcript=_build_section(TranscriptConfig, data.get("transcript")),
        )


def _coerce(default: Any, value: Any) -> Any:
    """Convert ``value`` to the type of ``default``, raising if it cannot be."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        raise ValueError("expected true or false")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ValueError("expected an integer")
        return int(value)
    if isinstance(default, tuple):
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ValueError("expected a list")
        return tuple(str(item) for item in value)
    return value


def _build_section(section_cls: type, values: Any) -> Any:
    if not isinstance(values, dict):
        return section_cls()

    kwargs: dict[str, Any] = {}
    for f in fields(section_cls):
        if f.name not in values:
            continue
        try:
            kwargs[f.name] = _coerce(f.default, values[f.name])
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Ignoring {section_cls.__name__}.{f.name}={values[f.name]!r}: {e}")
    return section_cls(**kwargs)


def _load_settings(settings_path: Path) -> dict[str, Any]:
    """Load settings from YAML file."""
    if not settings_path.exists():
        return {}

    try:
        content = settings_path.read_text()
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.debug(f"Failed to read settings file {settings_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.debug(f"Settings file {settings_path} is not a mapping, ignoring")
        return {}
    return data
