"""
Configuration loader — builds the install catalog.

The built-in catalog (``devsetup.core.data.catalog``) is always the
starting point. An optional ``devsetup.yml`` can adjust settings, add
targets, or replace built-in targets by name::

    settings:
      dotfiles_dir: ~/src/dotfiles
      action_timeout: 600
    targets:
      - name: tmux
        critical: false
        ...

Everything is validated against the Pydantic models before use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from devsetup.core.data.catalog import PREREQUISITES, TARGETS
from devsetup.core.models.settings import Settings
from devsetup.core.models.target import InstallTarget

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "devsetup.yml"


class ConfigError(Exception):
    """Raised when the catalog configuration is invalid or unreadable."""


@dataclass
class Catalog:
    """Targets, prerequisites and settings for one run."""

    targets: list[InstallTarget] = field(default_factory=list)
    prerequisites: list[InstallTarget] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    source: Path | None = None

    def get(self, name: str) -> InstallTarget | None:
        """Look up a target by name."""
        for target in self.targets:
            if target.name == name:
                return target
        return None

    @property
    def names(self) -> list[str]:
        return [t.name for t in self.targets]

    @property
    def default_targets(self) -> list[InstallTarget]:
        """Targets included in a full run, in run order."""
        return [t for t in self.targets if t.default]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devsetup.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to devsetup.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _validate_targets(raw: Any, where: str) -> list[InstallTarget]:
    if not isinstance(raw, list):
        raise ConfigError(f"Expected a list of targets in {where}, got {type(raw).__name__}")

    targets = []
    for index, entry in enumerate(raw):
        try:
            targets.append(InstallTarget.model_validate(entry))
        except ValidationError as e:
            name = entry.get("name", f"#{index}") if isinstance(entry, dict) else f"#{index}"
            raise ConfigError(f"Invalid target '{name}' in {where}: {e}") from e
    return targets


def _check_configurators(targets: list[InstallTarget], where: str) -> None:
    from devsetup.core.services.configure import CONFIGURATORS

    for target in targets:
        unknown = [name for name in target.configure if name not in CONFIGURATORS]
        if unknown:
            raise ConfigError(
                f"Target '{target.name}' in {where} uses unknown configurator(s): "
                f"{', '.join(unknown)}. Known: {', '.join(sorted(CONFIGURATORS))}"
            )


def builtin_catalog() -> Catalog:
    """The catalog shipped with devsetup."""
    return Catalog(
        targets=_validate_targets(TARGETS, "built-in catalog"),
        prerequisites=_validate_targets(PREREQUISITES, "built-in prerequisites"),
        settings=Settings(),
    )


def _merge_targets(
    base: list[InstallTarget],
    overrides: list[InstallTarget],
) -> list[InstallTarget]:
    """Replace targets with the same name in place; append new ones."""
    merged = list(base)
    positions = {t.name: i for i, t in enumerate(merged)}
    for target in overrides:
        if target.name in positions:
            merged[positions[target.name]] = target
        else:
            positions[target.name] = len(merged)
            merged.append(target)
    return merged


def load_catalog(path: Path | None = None) -> Catalog:
    """Load the built-in catalog, applying ``path`` on top if given.

    Args:
        path: Explicit path to a devsetup.yml. None = built-in only.

    Returns:
        Validated Catalog.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    catalog = builtin_catalog()
    if path is None:
        return catalog

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading catalog overrides from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    unknown_keys = set(data) - {"settings", "targets", "prerequisites"}
    if unknown_keys:
        raise ConfigError(f"Unknown top-level keys in {path}: {', '.join(sorted(unknown_keys))}")

    settings_data = data.get("settings") or {}
    if not isinstance(settings_data, dict):
        raise ConfigError(f"'settings' in {path} must be a mapping")
    try:
        catalog.settings = Settings.model_validate(
            {**catalog.settings.model_dump(), **settings_data}
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    if "targets" in data:
        overrides = _validate_targets(data["targets"] or [], str(path))
        catalog.targets = _merge_targets(catalog.targets, overrides)

    if "prerequisites" in data:
        catalog.prerequisites = _validate_targets(data["prerequisites"] or [], str(path))

    _check_configurators(catalog.targets, str(path))
    catalog.source = path

    logger.info("Loaded catalog from %s with %d targets", path, len(catalog.targets))
    return catalog


def discover_catalog(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> Catalog:
    """Load the catalog from ``config_path`` or the nearest devsetup.yml.

    With no explicit path and no file found upward from ``start_dir``,
    the built-in catalog is used as-is.
    """
    path = config_path or find_config_file(start_dir)
    return load_catalog(path)
