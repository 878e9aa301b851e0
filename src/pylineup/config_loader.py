"""Persist and load optimization settings profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from pylineup.config.settings import OptimizationSettings


@dataclass
class SettingsProfile:
    name: str
    settings: OptimizationSettings
    notes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "SettingsProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            name=data.get("name", path.stem),
            settings=OptimizationSettings.model_validate(data.get("settings", {})),
            notes=data.get("notes", {}),
        )

    def save(self, path: Path) -> None:
        payload = {
            "name": self.name,
            "settings": self.settings.model_dump(mode="json"),
            "notes": self.notes,
        }
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
