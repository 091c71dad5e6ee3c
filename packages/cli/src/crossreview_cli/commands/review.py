"""review command: run every configured agent on a pull/merge request."""

from __future__ import annotations

import click
from rich.console import Console

from crossreview_cli.auth import resolve_target_token
from crossreview_core.console import AutoConfirmer, Reporter, StdinConfirmer
from crossreview_core.errors import ConfigurationError, ReviewCancelled, ReviewError
from crossreview_core.models import RunOptions
from crossreview_core.reviewer import ReviewPipeline

console = Console()


@click.command("review")
@click.argument("url")
@click.option("--dry-run", is_flag=True, help="Run the agents and print the comments without posting anything.")
@click.option("--force", is_flag=True, help="Review again even if the head SHA was already claimed or reviewed.")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts.")
@click.pass_context
def review_cmd(ctx, url: str, dry_run: bool, force: bool, yes: bool):
    """Review a GitHub pull request or GitLab merge request URL.

    Every enabled agent reviews the diff independently, then each agent
    reacts to the others' findings. Results are posted as one comment per
    agent plus a final summary comment.

    \b
    Examples:
      crossreview review https://github.com/owner/repo/pull/42
      crossreview review https://gitlab.com/group/project/-/merge_requests/7 --dry-run
    """
    config = ctx.obj["config"]

    pipeline = ReviewPipeline(
        config,
        token_resolver=resolve_target_token,
        reporter=Reporter(console),
        confirmer=AutoConfirmer() if yes else StdinConfirmer(),
    )

    try:
        result = pipeline.execute(RunOptions(url=url, dry_run=dry_run, force=force))
    except ReviewCancelled as e:
        console.print(f"[yellow]{e}[/yellow]")
        ctx.exit(1)
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    except ReviewError as e:
        raise click.ClickException(str(e))

    if result.skipped:
        console.print(f"[yellow]Already reviewed {result.head_sha[:12]}. Use --force to review again.[/yellow]")
