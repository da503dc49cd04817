"""
Engine configuration.

Configuration is plain data loaded from TOML: either an `artiflow.toml` file or
the `[tool.artiflow]` table of a `pyproject.toml`. There is no process-wide
active config; callers pass an `EngineConfig` where they need one.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "artiflow.toml"
LOG_LEVEL_ENV = "ARTIFLOW_LOG_LEVEL"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for streaming sessions, helpers and the CLI."""

    log_level: str = "WARNING"
    # True: update()/complete() on a terminal session raise SessionClosedError.
    # False: they are ignored and logged.
    strict_terminal: bool = True
    # Plans longer than this are accepted but logged (progress is recomputed per delta).
    max_plan_steps: int = 50
    journal_path: Path | None = None
    source: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())
        if self.max_plan_steps <= 0:
            raise ValueError("max_plan_steps must be a positive integer")


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"{name} must be a boolean")


def config_from_dict(data: dict[str, Any], *, base_dir: Path | None = None, source: Path | None = None) -> EngineConfig:
    """Build an EngineConfig from a parsed TOML table, ignoring unknown keys."""
    kwargs: dict[str, Any] = {}
    if "log_level" in data:
        kwargs["log_level"] = str(data["log_level"])
    if "strict_terminal" in data:
        kwargs["strict_terminal"] = _coerce_bool("strict_terminal", data["strict_terminal"])
    if "max_plan_steps" in data:
        value = data["max_plan_steps"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("max_plan_steps must be an integer")
        kwargs["max_plan_steps"] = value
    if data.get("journal_path"):
        journal = Path(str(data["journal_path"]))
        if not journal.is_absolute() and base_dir is not None:
            journal = base_dir / journal
        kwargs["journal_path"] = journal
    return EngineConfig(source=source, **kwargs)


def _find_config(start: Path) -> tuple[Path, dict[str, Any]] | None:
    candidate = start / CONFIG_FILENAME
    if candidate.is_file():
        with open(candidate, "rb") as f:
            return candidate, tomllib.load(f)

    pyproject = start / "pyproject.toml"
    if pyproject.is_file():
        with open(pyproject, "rb") as f:
            table = tomllib.load(f).get("tool", {}).get("artiflow")
        if isinstance(table, dict):
            return pyproject, table
    return None


def load_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        path: Explicit TOML file. When omitted, `artiflow.toml` then
            `pyproject.toml` [tool.artiflow] in the working directory are tried.

    Returns:
        The loaded config, or defaults when no config file is found.

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the TOML is malformed or holds bad values
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Failed to parse config TOML: {e}") from e
        if config_path.name == "pyproject.toml":
            data = data.get("tool", {}).get("artiflow", {})
        found: tuple[Path, dict[str, Any]] | None = (config_path, data)
    else:
        try:
            found = _find_config(Path.cwd())
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse config TOML: {e}") from e

    config = EngineConfig() if found is None else config_from_dict(found[1], base_dir=found[0].parent, source=found[0])

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        config = replace(config, log_level=env_level)
    return config
