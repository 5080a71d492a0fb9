import warnings

import pytest

from hsreg.core.errors import NonConvergenceWarning
from hsreg.registration.cli import _parse_overrides, _parse_value, main
from hsreg.util.io.hdf5 import read_result
from tests.fixtures import translated_pair, write_series


@pytest.mark.parametrize("raw,expected", [
    ("true", True),
    ("False", False),
    ("3", 3),
    ("0.25", 0.25),
    ("[1, 2]", [1, 2]),
    ("numba", "numba"),
])
def test_parse_value(raw, expected):
    assert _parse_value(raw) == expected


def test_parse_overrides_skips_malformed(capsys):
    overrides = _parse_overrides(["alpha=0.5", "oops", "backend=numba"])
    assert overrides == {"alpha": 0.5, "backend": "numba"}
    assert "malformed" in capsys.readouterr().out


@pytest.fixture
def series_path(tmp_path):
    reference, current = translated_pair((32, 32), dx=1, dy=0, sigma=3.0)
    path = tmp_path / "series.dat"
    write_series(path, [reference, current])
    return path


def test_estimate_command(series_path, tmp_path):
    output = tmp_path / "result.h5"
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", NonConvergenceWarning)
        main(["estimate", str(series_path), "--reference", "0", "--current", "1",
              "--alpha", "0.001", "--levels", "1", "--output", str(output),
              "--of-params", "max_iterations=100"])
    stored = read_result(str(output))
    assert stored["u"].shape == (32, 32)


def test_run_command(series_path, tmp_path):
    config_path = tmp_path / "run.toml"
    config_path.write_text(
        f'input_file = "{series_path.as_posix()}"\n'
        f'output_file = "{(tmp_path / "run.h5").as_posix()}"\n'
        "reference_dynamic = 0\n"
        "current_dynamic = 1\n",
        encoding="utf-8",
    )
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", NonConvergenceWarning)
        main(["run", "--config", str(config_path), "--of-params", "levels=2", "alpha=0.001"])
    assert (tmp_path / "run.h5").exists()


def test_missing_config_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["run", "--config", str(tmp_path / "missing.toml")])
    assert exc.value.code == 1
    assert "not found" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit):
        main([])
