import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from diffsim.cli.generate import app, generate_files, make_output_path
from diffsim.config import load_simulation_config


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump(
            {
                "MODEL": "ddm_sdt",
                "N_TRIALS": 50,
                "THETA": {"a": 1.0, "v": 1.0, "t0": 0.2, "z": 0.5},
                "SIMULATOR": {"N_THREADS": 2},
            }
        )
    )
    return path


def test_make_output_path(tmp_path):
    path = make_output_path(tmp_path, "ddm_sdt", 100, 3, "csv")
    assert path == tmp_path / "ddm_sdt_n_trials_100_0003.csv"


def test_generate_files(tmp_path, yaml_config):
    config = load_simulation_config(yaml_config)
    written = generate_files(
        config, tmp_path / "out", n_files=2, file_format="pickle", show_progress=False
    )
    assert len(written) == 2
    table = pd.read_pickle(written[0])
    assert len(table) == 50
    assert list(table.columns) == [
        "reaction_time",
        "primary_response",
        "secondary_response",
    ]


def test_generate_files_unknown_format(tmp_path, yaml_config):
    config = load_simulation_config(yaml_config)
    with pytest.raises(ValueError, match="Unknown file format"):
        generate_files(config, tmp_path, file_format="parquet")


def test_cli(tmp_path, yaml_config):
    runner = CliRunner()
    output = tmp_path / "out"
    result = runner.invoke(
        app,
        [
            "--config-path",
            str(yaml_config),
            "--output",
            str(output),
            "--n-files",
            "2",
            "--n-trials",
            "30",
            "--seed",
            "7",
        ],
    )
    assert result.exit_code == 0, result.output
    files = sorted(output.glob("*.csv"))
    assert len(files) == 2
    table = pd.read_csv(files[0], index_col="trial")
    assert len(table) == 30


def test_cli_seed_is_reproducible(tmp_path, yaml_config):
    runner = CliRunner()
    tables = []
    for name in ("first", "second"):
        output = tmp_path / name
        result = runner.invoke(
            app,
            ["--config-path", str(yaml_config), "--output", str(output), "--seed", "7"],
        )
        assert result.exit_code == 0, result.output
        tables.append(pd.read_csv(next(output.glob("*.csv"))))
    pd.testing.assert_frame_equal(tables[0], tables[1])


def test_cli_default_config(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        app, ["--output", str(tmp_path), "--n-trials", "20", "--format", "pickle"]
    )
    assert result.exit_code == 0, result.output
    assert len(list(tmp_path.glob("*.pickle"))) == 1


def test_cli_bad_format(tmp_path, yaml_config):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["--config-path", str(yaml_config), "--output", str(tmp_path), "--format", "xml"],
    )
    assert result.exit_code == 1
