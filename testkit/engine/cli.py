"""CLI entry point to inspect the requirements of a test case."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml

from testkit.engine.config.tree import ConfigTree
from testkit.engine.config.user_files import default_config, load_config
from testkit.engine.exceptions import ConfigError, FormatError
from testkit.engine.properties import all_properties, from_properties
from testkit.engine.requirements import Environment, check_requirements

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)
logger = logging.getLogger(__name__)

app = typer.Typer()


def load_properties(properties_file: Path) -> dict[str, str]:
    """Read a test case's raw properties from a YAML mapping.

    Scalar values are converted to the strings a test program would print.

    Raises:
        FormatError: If the file is missing or is not a mapping of scalars

    """
    if not properties_file.exists():
        raise FormatError(f"Properties file not found: {properties_file}")

    try:
        with properties_file.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise FormatError(f"Invalid YAML in {properties_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FormatError(f"Properties in {properties_file} must be a mapping")

    properties: dict[str, str] = {}
    for name, value in data.items():
        if isinstance(value, bool):
            properties[str(name)] = "true" if value else "false"
        elif isinstance(value, (str, int, float)):
            properties[str(name)] = str(value)
        else:
            raise FormatError(
                f"Property '{name}' in {properties_file} must be a scalar"
            )
    return properties


@app.command()
def main(
    properties_file: Path = typer.Option(  # noqa: B008
        ..., "--properties", help="YAML file with the test case properties"
    ),
    config_file: Optional[Path] = typer.Option(  # noqa: B008, UP007
        None, "--config", help="YAML configuration file"
    ),
    suite: str = typer.Option(..., help="Name of the test suite"),
) -> None:
    """Check whether a test case could run on this host."""
    logger.info(f"Properties file: {properties_file}")
    logger.info(f"Test suite: {suite}")

    try:
        config: ConfigTree = (
            load_config(config_file) if config_file is not None else default_config()
        )
        metadata = from_properties(load_properties(properties_file))
    except (ConfigError, FormatError) as e:
        logger.error(f"Invalid input: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    reason = check_requirements(metadata, Environment.current(config, suite))

    output = {
        "properties": all_properties(metadata),
        "runnable": not reason,
        "reason": reason or None,
    }
    typer.echo(json.dumps(output, indent=2, sort_keys=True))

    if reason:
        logger.error(f"Requirements not met: {reason}")
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
