from pathlib import Path

import pytest

import polar_align_cli as cli
from solaris_alignment.align_core.settings import TomlSettingsStore


def _value(out: str, key: str) -> float:
    for line in out.splitlines():
        if line.startswith(f"{key}="):
            return float(line.split("=", 1)[1])
    raise AssertionError(f"{key}= not found in output:\n{out}")


def test_pole_inline_points(capsys):
    rc = cli.main(
        ["pole", "--point", "0", "40", "--point", "30", "40", "--point", "60", "40"]
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert "1 estimate(s)" in out
    assert "dec=+90.0000" in out


def test_pole_north_flag(capsys):
    rc = cli.main(
        [
            "pole", "--north",
            "--point", "60", "40", "--point", "30", "40", "--point", "0", "40",
        ]
    )
    assert rc == 0
    assert "dec=+90.0000" in capsys.readouterr().out


def test_pole_degenerate_exit_code(capsys):
    rc = cli.main(
        ["pole", "--point", "10", "40", "--point", "10", "40", "--point", "10", "40"]
    )
    assert rc == cli.EXIT_DEGENERATE
    assert "degenerate" in capsys.readouterr().out


def test_pole_from_samples_file(tmp_path: Path, capsys):
    p = tmp_path / "samples.tsv"
    p.write_text(
        "ha_deg\tdec_deg\n0\t40\n30\t40\n60\t40\n0\t-20\n30\t-20\n60\t-20\n",
        encoding="utf-8",
    )
    rc = cli.main(["pole", "--samples", str(p)])
    out = capsys.readouterr().out
    assert rc == 0
    assert "2 estimate(s)" in out
    assert out.count("dec=+90.0000") == 2


def test_pole_wrong_number_of_points(capsys):
    rc = cli.main(["pole", "--point", "0", "40", "--point", "30", "40"])
    assert rc == 1
    assert "ERROR" in capsys.readouterr().err


def test_rotator_command(capsys):
    rc = cli.main(["rotator", "--pa", "30", "--offset", "20"])
    assert rc == 0
    assert _value(capsys.readouterr().out, "rotator") == pytest.approx(10.0)


def test_rotator_command_flipped(capsys):
    rc = cli.main(["rotator", "--pa", "30", "--offset", "20", "--pier-side", "east"])
    assert rc == 0
    assert _value(capsys.readouterr().out, "rotator") == pytest.approx(190.0)


def test_camera_command_detects_image_flip(capsys):
    # mount unflipped, image taken on the calibration side -> flip detected
    rc = cli.main(
        [
            "camera", "--rotator", "10", "--offset", "20",
            "--pier-side", "west", "--image-pier-side", "west",
        ]
    )
    assert rc == 0
    assert _value(capsys.readouterr().out, "pa") == pytest.approx(-150.0)


def test_camera_command_plain(capsys):
    rc = cli.main(["camera", "--rotator", "350", "--offset", "20"])
    assert rc == 0
    assert _value(capsys.readouterr().out, "pa") == pytest.approx(10.0)


def test_offset_command_saves_to_settings(tmp_path: Path, capsys):
    cfg = tmp_path / "rotator.toml"
    rc = cli.main(
        [
            "offset", "--rotator", "10", "--pa", "5",
            "--settings", str(cfg), "--train", "Main Scope", "--save",
        ]
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert _value(out, "offset") == pytest.approx(-5.0)
    assert TomlSettingsStore(cfg).get_offset("Main Scope") == pytest.approx(-5.0)

    # the stored offset is picked up by later conversions
    rc = cli.main(
        ["rotator", "--pa", "5", "--settings", str(cfg), "--train", "Main Scope"]
    )
    assert rc == 0
    assert _value(capsys.readouterr().out, "rotator") == pytest.approx(10.0)


def test_offset_save_requires_settings(capsys):
    rc = cli.main(["offset", "--rotator", "10", "--pa", "5", "--save"])
    assert rc == 1
    assert "--save requires --settings" in capsys.readouterr().err


def test_log_dir_creates_run_log(tmp_path: Path, capsys):
    log_dir = tmp_path / "logs"
    rc = cli.main(
        ["--log-dir", str(log_dir), "rotator", "--pa", "0", "--offset", "0"]
    )
    assert rc == 0
    logs = list(log_dir.glob("run_*.log"))
    assert len(logs) == 1
    assert "Log file:" in capsys.readouterr().out
