"""Markdown bodies for the claim, per-agent, and final summary comments.

Every body starts with the marker that makes it findable on the next run, so
the marker strings come from policy rather than being spelled out here.
"""

from __future__ import annotations

from crossreview_core.models import AgentComment, AgentReaction, TokenUsage
from crossreview_core.policy import agent_marker, markers_for_sha


def render_claim(sha: str, target_url: str) -> str:
    marker = markers_for_sha(sha).claim_marker
    return (
        f"{marker}\n\n"
        "# Multi-Agent Code Review\n\n"
        f"- Target: {target_url}\n"
        f"- Head SHA: `{sha}`\n\n"
        "Review in progress..."
    )


def render_agent(sha: str, target_url: str, agent: AgentComment) -> str:
    lines = [
        agent_marker(agent.provider_id, sha),
        "",
        f"# Agent Review: {agent.provider_name}",
        "",
        f"- Target: {target_url}",
        f"- Head SHA: `{sha}`",
        f"- Token Usage: {format_usage(agent.usage)}",
        "",
        agent.body.strip(),
    ]
    return "\n".join(lines) + "\n"


def render_final(
    sha: str,
    target_url: str,
    reactions: list[AgentReaction],
    agent_comment_refs: list[tuple[str, str]],
    usage_rows: list[tuple[str, TokenUsage]],
) -> str:
    """Build the summary that replaces the claim comment once the run finishes."""
    lines = [
        markers_for_sha(sha).final_marker,
        "",
        "# Multi-Agent Review Summary",
        "",
        f"- Target: {target_url}",
        f"- Head SHA: `{sha}`",
        "",
        "## Individual Agent Comments",
        "",
    ]

    if not agent_comment_refs:
        lines.append("- No individual agent comments were posted.")
    else:
        for name, comment_id in agent_comment_refs:
            lines.append(f"- {name}: comment id `{comment_id}`")
    lines.append("")

    lines.append("## Agent-to-Agent Reactions")
    lines.append("")
    if not reactions:
        lines.append("- Not enough agents to run cross-agent reactions.")
        lines.append("")
    else:
        for reaction in reactions:
            lines.append("---")
            lines.append("")
            lines.append(f"### {reaction.provider_name} on Other Agents")
            lines.append("")
            lines.append(reaction.body.strip())
            lines.append("")

    lines.append("## Token Usage (Best Effort)")
    lines.append("")
    lines.append("| Agent | Prompt | Completion | Total |")
    lines.append("|---|---:|---:|---:|")
    for name, usage in usage_rows:
        lines.append(
            f"| {name} | {_opt_num(usage.prompt_tokens)} "
            f"| {_opt_num(usage.completion_tokens)} | {_opt_num(usage.total_tokens)} |"
        )

    return "\n".join(lines) + "\n"


def format_usage(usage: TokenUsage) -> str:
    return (
        f"prompt={_opt_num(usage.prompt_tokens)}, "
        f"completion={_opt_num(usage.completion_tokens)}, "
        f"total={_opt_num(usage.total_tokens)}"
    )


def _opt_num(value: int | None) -> str:
    return "n/a" if value is None else str(value)
