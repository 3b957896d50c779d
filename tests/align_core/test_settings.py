from pathlib import Path

import pytest

from solaris_alignment.align_core.model import PierSide
from solaris_alignment.align_core.settings import (
    DEFAULT_CALIBRATION_PIER_SIDE,
    InMemorySettingsStore,
    TomlSettingsStore,
    load_toml,
    merge_dicts,
)


def test_merge_dicts_is_recursive():
    a = {"trains": {"A": {"x": 1}}, "other": 1}
    b = {"trains": {"A": {"y": 2}, "B": {"z": 3}}}
    out = merge_dicts(a, b)
    assert out == {"trains": {"A": {"x": 1, "y": 2}, "B": {"z": 3}}, "other": 1}
    # inputs untouched
    assert a == {"trains": {"A": {"x": 1}}, "other": 1}


def test_in_memory_defaults_and_updates():
    s = InMemorySettingsStore()
    assert s.get_offset("x") == 0.0
    assert s.get_calibration_pier_side("x") is DEFAULT_CALIBRATION_PIER_SIDE
    s.set_offset("x", 12.5)
    assert s.get_offset("x") == 12.5


def test_toml_missing_file_gives_defaults(tmp_path: Path):
    s = TomlSettingsStore(tmp_path / "nope.toml")
    assert s.get_offset("Main Scope") == 0.0
    assert s.get_calibration_pier_side("Main Scope") is PierSide.WEST


def test_toml_reads_existing_file(tmp_path: Path):
    p = tmp_path / "rotator.toml"
    p.write_text(
        '[trains."Main Scope"]\n'
        "pa_offset_deg = -33.25\n"
        'calibration_pier_side = "east"\n',
        encoding="utf-8",
    )
    s = TomlSettingsStore(p)
    assert s.get_offset("Main Scope") == -33.25
    assert s.get_calibration_pier_side("Main Scope") is PierSide.EAST
    assert s.get_offset("Guide Scope") == 0.0


def test_toml_set_offset_persists_and_keeps_other_keys(tmp_path: Path):
    p = tmp_path / "cfg" / "rotator.toml"
    p.parent.mkdir()
    p.write_text(
        "[site]\nname = \"MZS\"\n\n"
        '[trains."Main Scope"]\ncalibration_pier_side = "east"\n',
        encoding="utf-8",
    )
    s = TomlSettingsStore(p)
    s.set_offset("Main Scope", 7.5)
    s.set_offset("Guide Scope", -1.0)

    doc = load_toml(p)
    assert doc["site"]["name"] == "MZS"
    assert doc["trains"]["Main Scope"]["pa_offset_deg"] == 7.5
    assert doc["trains"]["Main Scope"]["calibration_pier_side"] == "east"
    assert doc["trains"]["Guide Scope"]["pa_offset_deg"] == -1.0
    assert not (tmp_path / "cfg" / "rotator.toml.tmp").exists()

    # a fresh store sees the persisted value
    assert TomlSettingsStore(p).get_offset("Main Scope") == 7.5


def test_toml_set_calibration_pier_side(tmp_path: Path):
    s = TomlSettingsStore(tmp_path / "rotator.toml")
    s.set_calibration_pier_side("Main Scope", PierSide.EAST)
    assert s.get_calibration_pier_side("Main Scope") is PierSide.EAST


def test_toml_invalid_offset_raises(tmp_path: Path):
    p = tmp_path / "rotator.toml"
    p.write_text('[trains.A]\npa_offset_deg = "abc"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        TomlSettingsStore(p).get_offset("A")


def test_toml_invalid_pier_side_raises(tmp_path: Path):
    p = tmp_path / "rotator.toml"
    p.write_text('[trains.A]\ncalibration_pier_side = "up"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        TomlSettingsStore(p).get_calibration_pier_side("A")


def test_toml_trains_must_be_a_table(tmp_path: Path):
    p = tmp_path / "rotator.toml"
    p.write_text("trains = 3\n", encoding="utf-8")
    with pytest.raises(ValueError):
        TomlSettingsStore(p).get_offset("A")
