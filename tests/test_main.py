# tests/test_main.py

import pytest

from room_mode_eq.cli.__main__ import main
from room_mode_eq.eq_control.presets import EQPreset


def test_main_prints_summary(capsys):
    assert main(["--bands", "8"]) == 0
    captured = capsys.readouterr()
    assert "Simulating room response..." in captured.out
    assert "Pass 1 (Broad Correction)" in captured.out
    assert "Target offset:" in captured.out
    assert "RMS error:" in captured.out


def test_main_exports_filters(tmp_path, capsys):
    path = tmp_path / "filters.txt"
    assert main(["--room", "4.8,4.8,2.7", "--source", "0.38,0.25,0.83", "--listener", "2.0,3.7,0.55",
                 "--bands", "10", "--export", str(path), "--format", "apo"]) == 0
    content = path.read_text()
    assert content.startswith("Preamp:")
    preset = EQPreset.load_from_file(str(path))
    assert 0 < len(preset.filters) <= 10
    assert "Filters written to" in capsys.readouterr().out


def test_main_saves_plot(tmp_path):
    path = tmp_path / "response.png"
    assert main(["--bands", "6", "--plot", str(path)]) == 0
    assert path.exists()
    assert path.stat().st_size > 0


def test_main_rejects_invalid_options(capsys):
    assert main(["--smoothing", "2.0"]) == 2
    assert "Invalid EQ options" in capsys.readouterr().err


def test_main_rejects_malformed_position():
    with pytest.raises(SystemExit):
        main(["--room", "4.8,4.8"])
