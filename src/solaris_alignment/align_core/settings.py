from __future__ import annotations

"""
settings.py
===========

Settings stores for the rotator calibration offset.

The rotator converter only needs three calls (see ``SettingsStore`` in
``model.py``). Two implementations are provided:

- ``InMemorySettingsStore``: a plain dict, used by tests and by callers that
  persist settings themselves.
- ``TomlSettingsStore``: one TOML file holding one table per equipment
  configuration (optical train) id.

TOML layout
-----------
    [trains."Main Scope"]
    pa_offset_deg = 12.5
    calibration_pier_side = "west"

Missing file, table or key falls back to offset 0.0 and pier side WEST.
Writes rewrite the whole file atomically (temp file, then replace).
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w

from .model import PierSide

logger = logging.getLogger(__name__)

DEFAULT_OFFSET_DEG = 0.0
DEFAULT_CALIBRATION_PIER_SIDE = PierSide.WEST

_TRAINS_KEY = "trains"
_OFFSET_KEY = "pa_offset_deg"
_PIER_KEY = "calibration_pier_side"


def load_toml(path: str | Path) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge_dicts(out[k], v)
        else:
            out[k] = v
    return out


class InMemorySettingsStore:
    """Dict-backed settings store."""

    def __init__(
        self,
        offsets: Optional[Dict[str, float]] = None,
        calibration_pier_sides: Optional[Dict[str, PierSide]] = None,
    ) -> None:
        self.offsets: Dict[str, float] = dict(offsets or {})
        self.calibration_pier_sides: Dict[str, PierSide] = dict(
            calibration_pier_sides or {}
        )

    def get_offset(self, configuration_id: str) -> float:
        return float(self.offsets.get(configuration_id, DEFAULT_OFFSET_DEG))

    def set_offset(self, configuration_id: str, offset_deg: float) -> None:
        self.offsets[configuration_id] = float(offset_deg)

    def get_calibration_pier_side(self, configuration_id: str) -> PierSide:
        return self.calibration_pier_sides.get(
            configuration_id, DEFAULT_CALIBRATION_PIER_SIDE
        )


class TomlSettingsStore:
    """Settings store persisted to a TOML file.

    The file is read on every ``get_*`` call so that edits made by another
    process between sessions are picked up. Unknown tables and keys are kept
    untouched on write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        return load_toml(self.path)

    def _train_table(self, configuration_id: str) -> Dict[str, Any]:
        trains = self._load().get(_TRAINS_KEY, {})
        if not isinstance(trains, dict):
            raise ValueError(
                f"Expected a [{_TRAINS_KEY}] table in {self.path}, "
                f"got {type(trains).__name__}"
            )
        table = trains.get(configuration_id, {})
        return table if isinstance(table, dict) else {}

    def get_offset(self, configuration_id: str) -> float:
        value = self._train_table(configuration_id).get(_OFFSET_KEY)
        if value is None:
            return DEFAULT_OFFSET_DEG
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid {_OFFSET_KEY} for '{configuration_id}' in "
                f"{self.path}: {value!r}"
            ) from None

    def get_calibration_pier_side(self, configuration_id: str) -> PierSide:
        value = self._train_table(configuration_id).get(_PIER_KEY)
        if value is None:
            return DEFAULT_CALIBRATION_PIER_SIDE
        return PierSide.parse(value)

    def set_offset(self, configuration_id: str, offset_deg: float) -> None:
        self._update(configuration_id, {_OFFSET_KEY: float(offset_deg)})

    def set_calibration_pier_side(
        self, configuration_id: str, side: PierSide
    ) -> None:
        self._update(configuration_id, {_PIER_KEY: PierSide.parse(side).value})

    def _update(self, configuration_id: str, values: Dict[str, Any]) -> None:
        doc = merge_dicts(
            self._load(), {_TRAINS_KEY: {configuration_id: dict(values)}}
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp.open("wb") as f:
                tomli_w.dump(doc, f)
            tmp.replace(self.path)
        finally:
            if tmp.exists() and self.path.exists():
                try:
                    tmp.unlink()
                except OSError:
                    pass
        logger.debug(
            "Stored %s for '%s' in %s", sorted(values), configuration_id, self.path
        )


__all__ = [
    "DEFAULT_OFFSET_DEG",
    "DEFAULT_CALIBRATION_PIER_SIDE",
    "InMemorySettingsStore",
    "TomlSettingsStore",
    "load_toml",
    "merge_dicts",
]
