import json

import pytest

import inspect_model
from sdstructure import io_paths


@pytest.fixture(autouse=True)
def _isolated_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(inspect_model, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(inspect_model, "OUTPUT_DIR", tmp_path / "output")


def test_stock_command_prints_flows(capsys):
    assert inspect_model.main(["stock", "A0020"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["name"] == "pop₊A0020"
    assert out["inflows"] == ["BIRTHS"]
    assert out["outflows"] == ["PASS20"]


def test_flows_command_lists_terms(capsys):
    assert inspect_model.main(["flows"]) == 0
    out = capsys.readouterr().out
    assert "PASS20" in out
    assert "outflow of: pop₊A0020" in out


def test_unknown_name_exits_with_error(capsys):
    assert inspect_model.main(["inputs", "AWBX"]) == 1
    out = capsys.readouterr().out
    assert out.startswith("Error: Auxiliary 'AWBX' not found.")


def test_ambiguous_timeseries_name(capsys):
    argv = ["--scenario", str(io_paths.SCENARIOS_DIR / "baseline.yaml"), "timeseries", "POP"]
    assert inspect_model.main(argv) == 1
    assert "Ambiguous" in capsys.readouterr().out


def test_timeseries_csv(tmp_path):
    assert inspect_model.main(["--preset", "baseline", "timeseries", "pop₊POP", "--csv"]) == 0
    text = (tmp_path / "output" / "pop₊POP.csv").read_text(encoding="utf-8")
    assert text.splitlines()[0] == "t,values"


def test_unknown_preset_raises():
    with pytest.raises(FileNotFoundError):
        inspect_model.main(["--preset", "nope", "variables"])


def test_subcommand_required():
    with pytest.raises(SystemExit):
        inspect_model.parse_args([])
