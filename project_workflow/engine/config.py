#!/usr/bin/env python3
"""
Workflow Engine Configuration Reader

Reads deployment configuration from the consuming application's .workflow/
directory:
- .workflow/config.yaml — backing store selection and log level

The engine has sensible defaults for all settings and the file is optional.
The workflow definitions themselves live in the backing store, not here.

Example:

    store:
      backend: sqlite           # json | sqlite | memory
      path: data/workflows.db
    logging:
      level: DEBUG
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .persistence import InMemoryPersistence, JsonFilePersistence, WorkflowPersistence
from .schema import SqlitePersistence

BACKENDS = frozenset(["json", "sqlite", "memory"])

_DEFAULT_PATHS = {
    "json": "data/workflows.json",
    "sqlite": "data/workflows.db",
    "memory": "",
}


@dataclass
class EngineConfig:
    """Runtime configuration loaded from .workflow/config.yaml."""
    store_backend: str = "json"
    store_path: str = "data/workflows.json"
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start directory to find the .workflow/ directory."""
    current = start or Path.cwd()
    for candidate in [current] + list(current.parents):
        if (candidate / ".workflow").exists():
            return candidate
    return current  # fallback to cwd


def load_engine_config(
    project_root: str | Path,
    config_yaml_path: str | Path | None = None,
) -> EngineConfig:
    """
    Load EngineConfig from .workflow/config.yaml.

    Args:
        project_root: Root of the consuming application.
        config_yaml_path: Override path for config.yaml (default: .workflow/config.yaml).

    Returns:
        EngineConfig with defaults applied where missing; relative store
        paths resolved against project_root.

    Raises:
        ValueError: unknown store backend
    """
    project_root = Path(project_root)
    config_path = Path(config_yaml_path) if config_yaml_path else project_root / ".workflow" / "config.yaml"

    config_doc: dict[str, Any] = {}
    if config_path.exists():
        config_doc = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}

    store_section = config_doc.get("store") or {}
    backend = str(store_section.get("backend", "json")).lower()
    if backend not in BACKENDS:
        raise ValueError(
            f"Unknown store backend '{backend}' in {config_path}. "
            f"Valid backends: {sorted(BACKENDS)}"
        )

    store_path = store_section.get("path") or _DEFAULT_PATHS[backend]
    if store_path and not Path(store_path).is_absolute():
        store_path = str(project_root / store_path)

    logging_section = config_doc.get("logging") or {}
    log_level = str(logging_section.get("level", "INFO")).upper()

    return EngineConfig(
        store_backend=backend,
        store_path=store_path,
        log_level=log_level,
    )


def create_persistence(config: EngineConfig) -> WorkflowPersistence:
    """Build the persistence adapter named by the configuration."""
    if config.store_backend == "sqlite":
        return SqlitePersistence(config.store_path)
    if config.store_backend == "memory":
        return InMemoryPersistence()
    return JsonFilePersistence(config.store_path)
