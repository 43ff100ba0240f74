#!/usr/bin/env -S uv run --script

import logging
from importlib.resources import as_file, files
from pathlib import Path
from pprint import pformat

import tqdm
import typer

import diffsim
from diffsim.config import load_simulation_config

app = typer.Typer(add_completion=False)

FILE_FORMATS = ("csv", "pickle")


def make_output_path(
    output_folder: str | Path, model: str, n_trials: int, index: int, file_format: str
) -> Path:
    """Build the file name of the ``index``-th simulated table."""
    suffix = "csv" if file_format == "csv" else "pickle"
    return Path(output_folder) / f"{model}_n_trials_{n_trials}_{index:04d}.{suffix}"


def write_table(table, path: Path, file_format: str) -> None:
    if file_format == "csv":
        table.to_csv(path)
    else:
        table.to_pickle(path)


def generate_files(
    config: dict,
    output: str | Path,
    n_files: int = 1,
    file_format: str = "csv",
    show_progress: bool = True,
) -> list[Path]:
    """Simulate ``n_files`` tables from a loaded run configuration.

    Returns
    -------
    list[Path]
        Paths of the files written, in generation order.
    """
    if file_format not in FILE_FORMATS:
        raise ValueError(
            f"Unknown file format '{file_format}'. Available: {list(FILE_FORMATS)}"
        )
    logger = logging.getLogger(__name__)

    output_folder = Path(output)
    output_folder.mkdir(parents=True, exist_ok=True)

    simulator = diffsim.Simulator(config["model"], **config["simulator"])
    n_trials = config["n_trials"]

    written = []
    for index in tqdm.tqdm(
        range(n_files),
        desc="Generating simulated data files",
        unit="file",
        disable=not show_progress,
    ):
        table = simulator.simulate(n_trials, theta=config["theta"])
        path = make_output_path(
            output_folder, config["model"], n_trials, index, file_format
        )
        write_table(table, path, file_format)
        logger.info("Wrote %d trials to %s", len(table), path)
        written.append(path)
    return written


log_level_option = typer.Option(
    "WARNING",
    "--log-level",
    "-l",
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    case_sensitive=False,
    show_default=True,
    rich_help_panel="Logging",
    metavar="LEVEL",
    autocompletion=lambda: ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
)

epilog = "Example: `diffsim-generate --config-path myconfig.yaml --output ./output --n-files 10 --seed 1 --log-level INFO`"


@app.command(epilog=epilog)
def main(
    config_path: Path = typer.Option(None, help="Path to the YAML configuration file."),
    output: Path = typer.Option(..., help="Path to the output directory."),
    n_files: int = typer.Option(
        1,
        "--n-files",
        "-n",
        help="Number of files to generate.",
        min=1,
        show_default=True,
    ),
    n_trials: int = typer.Option(
        None, "--n-trials", help="Number of trials per file (overrides the config)."
    ),
    seed: int = typer.Option(
        None, "--seed", help="Reseed the global random stream before generating."
    ),
    n_threads: int = typer.Option(
        None, "--n-threads", help="Number of worker threads (overrides the config)."
    ),
    file_format: str = typer.Option(
        "csv", "--format", help="Output file format: csv or pickle.", show_default=True
    ),
    log_level: str = log_level_option,
):
    """
    Simulate diffusion / SDT data and write one table per file.
    """
    logging.basicConfig(
        level=log_level.upper(), format="%(asctime)s - %(levelname)s - %(message)s"
    )
    logger = logging.getLogger(__name__)

    if config_path is None:
        logger.warning("No config path provided, using default configuration.")
        with as_file(files("diffsim.cli") / "config_simulation.yaml") as default_config:
            config = load_simulation_config(default_config)
    else:
        config = load_simulation_config(config_path)

    if n_trials is not None:
        config["n_trials"] = n_trials
    if n_threads is not None:
        config["simulator"]["n_threads"] = n_threads
    if seed is not None:
        diffsim.set_seed(seed)
        logger.info("Global random stream seeded with %d", seed)

    logger.debug("SIMULATION CONFIG")
    logger.debug(pformat(config))

    try:
        written = generate_files(
            config, output, n_files=n_files, file_format=file_format
        )
    except ValueError as e:
        logger.error("%s", e)
        raise typer.Exit(code=1)

    logger.info("Newly generated files: %s", written)
    logger.info("Data generation finished")


if __name__ == "__main__":
    app()
