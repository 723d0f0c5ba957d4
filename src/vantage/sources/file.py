"""Snapshot exports on disk (JSON or YAML)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import yaml

from ..models.snapshot import Snapshot
from .base import BaseSource, DashboardUnavailableError

YAML_SUFFIXES = (".yaml", ".yml")


def load_payload(path: Path) -> dict:
    """Read a snapshot export. Raises DashboardUnavailableError on any read or parse failure."""
    if not path.is_file():
        raise DashboardUnavailableError(f"snapshot not found: {path}")
    try:
        content = path.read_text(encoding="utf-8-sig")
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise DashboardUnavailableError(f"snapshot could not be read: {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise DashboardUnavailableError(f"snapshot is not a mapping: {path.name}")
    return data


class FileSnapshotSource(BaseSource):
    name = "file"

    def __init__(self, source_config: dict, base_path: Optional[Path] = None):
        super().__init__(source_config)
        self.base_path = base_path

    @property
    def path(self) -> Path:
        path = Path(self.config.get("path") or "snapshot.json")
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        return path

    async def fetch(self) -> Snapshot:
        return Snapshot.from_payload(load_payload(self.path))
