"""CLI entry point for crossreview.

Commands:
  review   run every configured agent on a PR/MR and post the results
  config   show the effective configuration and agent backends
  auth     log in to GitHub or GitLab through gh / glab
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys

import click

from crossreview_cli.commands.auth import auth_cmd
from crossreview_cli.commands.config import config_cmd
from crossreview_cli.commands.review import review_cmd


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr so stdout only carries review output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("crossreview"),
    prog_name="crossreview",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to the configuration file. Defaults to .crossreview.yml when present.",
    envvar="CROSSREVIEW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """Multi-agent AI code review for GitHub PRs and GitLab MRs."""
    from crossreview_core.config import load_config
    from crossreview_core.errors import ConfigurationError

    setup_logging(verbose)
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = load_config(config_path)
    except ConfigurationError as e:
        raise click.UsageError(str(e))


main.add_command(review_cmd)
main.add_command(config_cmd)
main.add_command(auth_cmd)
