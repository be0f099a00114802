"""Layered configuration for citecraft.

Resolution order (later overrides earlier):
  1. Built-in defaults
  2. Global user config:  ~/.citecraft/config.json
  3. Project config:      .citecraft.config.json (searched cwd → parents)
  4. An explicit --config file (.yaml, .yml or .json)
  5. CLI flags (--max-combinations, --renderer, etc.)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

GLOBAL_DIR = Path.home() / ".citecraft"
GLOBAL_CONFIG = GLOBAL_DIR / "config.json"
PROJECT_CONFIG_NAME = ".citecraft.config.json"

OVERFLOW_MODES = ("refuse", "sample")


@dataclass
class CiteCraftConfig:
    """Resolved configuration."""

    history_limit: int = 100
    max_combinations: int = 4096
    sample_budget: int = 256
    overflow: str = "refuse"
    sample_seed: Optional[int] = None
    renderer: str = "bracket"

    # Provenance tracking (which files contributed)
    _global_path: Optional[Path] = field(default=None, repr=False)
    _project_path: Optional[Path] = field(default=None, repr=False)
    _file_path: Optional[Path] = field(default=None, repr=False)

    @classmethod
    def from_file(cls, path: Path) -> "CiteCraftConfig":
        """Load config from a single YAML or JSON file on top of the defaults."""
        config = cls()
        apply_dict(config, read_config_file(path))
        config._file_path = path
        return config


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read a ``.yaml``/``.yml`` or JSON config file into a dict.

    Raises ``OSError`` if the file cannot be read and ``ValueError`` if it
    cannot be parsed.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        data = json.loads(text)
    return data if isinstance(data, dict) else {}


def _find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Walk from *start* up to the filesystem root looking for project config."""
    current = (start or Path.cwd()).resolve()
    for _ in range(50):  # safety limit
        candidate = current / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _load_json(path: Path) -> Dict[str, Any]:
    """Load a JSON file, returning {} if it is unreadable."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _positive_int(value: Any, key: str) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r", key, value)
        return None
    if number < 0:
        logger.warning("Ignoring negative %s=%r", key, value)
        return None
    return number


def apply_dict(config: CiteCraftConfig, data: Dict[str, Any]) -> None:
    """Merge a raw dict into a config object, skipping invalid values."""
    for key in ("history_limit", "max_combinations", "sample_budget"):
        if key in data:
            number = _positive_int(data[key], key)
            if number is not None:
                setattr(config, key, number)
    if "overflow" in data:
        mode = str(data["overflow"])
        if mode in OVERFLOW_MODES:
            config.overflow = mode
        else:
            logger.warning("Ignoring unknown overflow mode %r", mode)
    if "sample_seed" in data:
        seed = data["sample_seed"]
        config.sample_seed = None if seed is None else _positive_int(seed, "sample_seed")
    if "renderer" in data:
        config.renderer = str(data["renderer"])


def load_config(
    project_dir: Optional[Path] = None,
    config_file: Optional[Path] = None,
) -> CiteCraftConfig:
    """Load and merge the layered configuration.

    Parameters
    ----------
    project_dir : Path, optional
        Starting directory for project config search (defaults to cwd).
    config_file : Path, optional
        Explicit YAML or JSON config file from ``--config``.
    """
    config = CiteCraftConfig()

    # 1. Global
    if GLOBAL_CONFIG.is_file():
        apply_dict(config, _load_json(GLOBAL_CONFIG))
        config._global_path = GLOBAL_CONFIG

    # 2. Project (overrides global)
    proj = _find_project_config(project_dir)
    if proj:
        apply_dict(config, _load_json(proj))
        config._project_path = proj

    # 3. Explicit file
    if config_file is not None:
        apply_dict(config, read_config_file(config_file))
        config._file_path = config_file

    return config


def print_env(config: CiteCraftConfig) -> str:
    """Return a formatted string describing the resolved environment."""
    lines = []
    lines.append("citecraft Environment")
    lines.append("=" * 50)
    lines.append("")
    lines.append(f"  Global config:    {config._global_path or '(not found)'}")
    lines.append(f"  Project config:   {config._project_path or '(not found)'}")
    lines.append(f"  Config file:      {config._file_path or '(none)'}")
    lines.append("")
    lines.append(f"  Renderer:         {config.renderer}")
    lines.append(f"  History limit:    {config.history_limit}")
    lines.append(f"  Max combinations: {config.max_combinations}")
    lines.append(f"  Overflow:         {config.overflow}")
    lines.append(f"  Sample budget:    {config.sample_budget}")
    lines.append(f"  Sample seed:      {config.sample_seed if config.sample_seed is not None else '(random)'}")
    lines.append("")
    return "\n".join(lines)
