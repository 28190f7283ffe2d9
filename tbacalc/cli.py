import typer
import yaml
import os
import logging
from pydantic import ValidationError
from typing_extensions import Annotated

from tbacalc import runner
from tbacalc.schema import TBAConfig

app = typer.Typer(help="tbacalc: Tight-Binding Band Structure Calculator CLI")

logger = logging.getLogger("tbacalc")

TEMPLATE = """
# Kitaev chain: spinless fermions with nearest-neighbour p-wave pairing
lattice:
  vectors: [[1.0]]
  sites: [[0.0]]

basis:
  statistics: fermionic

terms:
  - type: hopping
    name: t
    bonds:
      - {site_i: 0, site_j: 0, offset: [1]}
  - type: onsite
    name: mu
    amplitude: "-mu"
  - type: pairing
    name: Delta
    bonds:
      - {site_i: 0, site_j: 0, offset: [1]}

parameters:
  t: 1.0
  mu: 0.5
  Delta: 0.3

k_path:
  points:
    X0: [-0.5]
    G: [0.0]
    X: [0.5]
  path: [X0, G, X]
  points_per_segment: 50

tasks:
  run_bands: true
  plot_bands: true
""".strip()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False
):
    """
    Calculate energy bands of free lattice systems.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S',
    )


@app.command()
def init(
    filename: Annotated[str, typer.Argument(help="Filename for the new config")] = "config.yaml"
):
    """
    Generate a template configuration file.
    """
    if os.path.exists(filename):
        typer.confirm(f"{filename} already exists. Overwrite?", abort=True)

    with open(filename, "w") as f:
        f.write(TEMPLATE + "\n")
    typer.echo(f"Created template config: {filename}")


@app.command()
def validate(
    config_file: Annotated[str, typer.Argument(help="Path to the config.yaml file")]
):
    """
    Validate a configuration file against the schema.
    """
    if not os.path.exists(config_file):
        typer.secho(f"Error: File {config_file} not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f)
        TBAConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        typer.secho("Validation Failed:", fg=typer.colors.RED)
        typer.echo(str(e))
        raise typer.Exit(code=1)

    typer.secho(f"Success: {config_file} is valid.", fg=typer.colors.GREEN)


@app.command()
def run(
    config_file: Annotated[str, typer.Argument(help="Path to the config.yaml file")]
):
    """
    Run calculations defined in the configuration file.
    """
    try:
        runner.run_calculation(config_file)
    except Exception as e:
        logger.debug("Calculation failed", exc_info=True)
        typer.secho(f"Calculation failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho("Calculation completed successfully.", fg=typer.colors.GREEN)


# Entry point for setuptools
def main():
    app()


if __name__ == "__main__":
    app()
