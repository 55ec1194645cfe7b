"""Run configuration for the deflattening pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError
from .reorder import DEFAULT_ANNOTATION_PREFIX


@dataclass(frozen=True)
class DeflattenOptions:
    """Customisation knobs shared by every stage."""

    control_flow_var: Optional[str] = None
    condition_var: Optional[str] = None
    source_type: str = "script"
    tolerant: bool = False
    simplify_less_than: bool = True
    annotation_prefix: str = DEFAULT_ANNOTATION_PREFIX
    output_dir: Optional[Path] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "DeflattenOptions":
        """Create options from a decoded JSON object."""

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ConfigError(f"unknown option(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in payload.items():
            if value is None:
                continue
            if key in {"tolerant", "simplify_less_than"}:
                if not isinstance(value, bool):
                    raise ConfigError(f"option {key} must be a boolean")
            elif key == "output_dir":
                if not isinstance(value, str):
                    raise ConfigError("option output_dir must be a path string")
                value = Path(value)
            elif not isinstance(value, str):
                raise ConfigError(f"option {key} must be a string")
            values[key] = value

        if values.get("source_type", "script") not in ("script", "module"):
            raise ConfigError("option source_type must be 'script' or 'module'")
        return cls(**values)

    @classmethod
    def load(cls, path: Path) -> "DeflattenOptions":
        try:
            payload = json.loads(path.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"cannot read options from {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError(f"options file {path} must contain a JSON object")
        return cls.from_json(payload)

    def merged(self, **overrides: Any) -> "DeflattenOptions":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


__all__ = ["DeflattenOptions"]
