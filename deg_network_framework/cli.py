"""
Command-line interface for the DEG Network Framework.

Usage:
    python -m deg_network_framework --config configs/demo.yaml
    dnf --config configs/demo.yaml --order minimum
"""

import sys
from pathlib import Path

import click

from . import __version__
from .exceptions import NetworkAnalysisError
from .network_builder.builder import NetworkOrder
from .pipeline import NetworkAnalysisPipeline, PipelineConfig


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Path to YAML configuration file",
)
@click.option(
    "--order",
    type=click.Choice([o.value for o in NetworkOrder]),
    default=None,
    help="Override network order from config",
)
@click.option(
    "--anchors",
    type=click.Choice(["seeds", "hubs"]),
    default=None,
    help="Override subnetwork anchor source from config",
)
@click.option(
    "--verbose/--quiet",
    "-v/-q",
    default=True,
    help="Enable/disable verbose output",
)
@click.version_option(version=__version__, prog_name="deg-network-framework")
def main(config: str, order: str, anchors: str, verbose: bool) -> None:
    """
    DEG Network Framework - Differential Expression Network Analysis

    Build seeded gene networks, score hubs, extract connecting subnetworks
    and build pathway-similarity networks. Prints a summary; writes nothing.

    Example:
        python -m deg_network_framework --config configs/demo.yaml
    """
    click.echo(f"DEG Network Framework v{__version__}")
    click.echo("=" * 50)

    config_path = Path(config)
    click.echo(f"Loading config: {config_path}")

    try:
        pipeline_config = PipelineConfig.from_yaml(str(config_path))

        # Apply overrides
        if order:
            pipeline_config.network.order = NetworkOrder.parse(order)
        if anchors:
            pipeline_config.anchor_source = anchors
        pipeline_config.verbose = verbose

        pipeline = NetworkAnalysisPipeline(pipeline_config)
        result = pipeline.run()

        click.echo("")
        click.echo(result.summary)

    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except (NetworkAnalysisError, ValueError) as e:
        click.echo(f"Pipeline failed: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
