"""Render and publish per-agent comments and the final summary."""

from __future__ import annotations

import logging

from crossreview_core import render
from crossreview_core.console import Reporter
from crossreview_core.context import ExecutionContext
from crossreview_core.errors import InternalError
from crossreview_core.models import AgentComment, AgentReaction, RunOptions, TokenUsage
from crossreview_core.policy import agent_marker, find_comment_with_marker, upsert_comment_cache

logger = logging.getLogger(__name__)


def publish_agent_comments(
    ctx: ExecutionContext,
    options: RunOptions,
    agent_comments: list[AgentComment],
    reporter: Reporter,
) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    """Create or update one comment per agent.

    Returns ``(comment_refs, rendered)``. comment_refs holds
    ``(provider_name, comment_id)`` in agent order and is empty in dry-run;
    rendered holds ``(provider_name, markdown)`` and is only filled in dry-run.
    """
    if options.dry_run:
        reporter.section("Dry Run: Individual Comments")
        rendered = []
        for agent in agent_comments:
            markdown = render.render_agent(ctx.head_sha, ctx.target_url, agent)
            reporter.raw(f"--- {agent.provider_name} ---")
            reporter.raw(markdown)
            rendered.append((agent.provider_name, markdown))
        return [], rendered

    reporter.section("Post Individual Comments")
    refs: list[tuple[str, str]] = []
    for agent in agent_comments:
        markdown = render.render_agent(ctx.head_sha, ctx.target_url, agent)
        existing = find_comment_with_marker(ctx.comments, agent_marker(agent.provider_id, ctx.head_sha))

        if existing is not None:
            reporter.status(agent.provider_name, "updating comment")
            posted = ctx.vcs.update_comment(existing.id, markdown)
        else:
            reporter.status(agent.provider_name, "creating comment")
            posted = ctx.vcs.create_comment(markdown)

        refs.append((agent.provider_name, posted.id))
        upsert_comment_cache(ctx.comments, posted)
    return refs, []


def publish_final_summary(
    ctx: ExecutionContext,
    options: RunOptions,
    claim_comment_id: str | None,
    reactions: list[AgentReaction],
    agent_comment_refs: list[tuple[str, str]],
    usage_rows: list[tuple[str, TokenUsage]],
    reporter: Reporter,
) -> str:
    """Render the summary and, outside dry-run, overwrite the claim comment with it.

    The summary never gets a new comment: it replaces the claim so exactly one
    final marker exists per SHA. Returns the rendered markdown.
    """
    final_markdown = render.render_final(ctx.head_sha, ctx.target_url, reactions, agent_comment_refs, usage_rows)

    if options.dry_run:
        reporter.section("Dry Run: Final Summary Comment")
        reporter.raw(final_markdown)
        return final_markdown

    if not claim_comment_id:
        raise InternalError("internal error: missing claim comment id for non-dry-run")

    updated = ctx.vcs.update_comment(claim_comment_id, final_markdown)
    upsert_comment_cache(ctx.comments, updated)
    reporter.section("Done")
    reporter.status("VCS", "final summary comment posted")
    logger.info("Final summary posted to comment %s", claim_comment_id)
    return final_markdown
