"""Dedup markers, comment-cache upserts, usage totals, and the cross-agent prompt.

Marker invariant: the pipeline writes exactly one comment per (SHA) final or
claim marker and one per (agent, SHA) marker. If an out-of-band edit ever
duplicates a marker, lookups pick the first comment in host listing order.
"""

from __future__ import annotations

from typing import Iterable

from crossreview_core.models import CommentLanguage, ProviderRun, ReviewComment, ReviewMarkers, TokenUsage

_MARKER_PREFIX = "crossreview-bot"


def markers_for_sha(sha: str) -> ReviewMarkers:
    return ReviewMarkers(
        final_marker=f"<!-- {_MARKER_PREFIX} sha={sha} -->",
        claim_marker=f"<!-- {_MARKER_PREFIX} claim sha={sha} -->",
    )


def agent_marker(provider_id: str, sha: str) -> str:
    return f"<!-- {_MARKER_PREFIX} agent={provider_id} sha={sha} -->"


def find_comment_with_marker(comments: Iterable[ReviewComment], marker: str) -> ReviewComment | None:
    """Return the first comment whose body contains marker, or None."""
    for comment in comments:
        if marker in (comment.body or ""):
            return comment
    return None


def upsert_comment_cache(comments: list[ReviewComment], comment: ReviewComment) -> None:
    """Replace the cached comment with the same id, or append it."""
    for idx, existing in enumerate(comments):
        if existing.id == comment.id:
            comments[idx] = comment
            return
    comments.append(comment)


def add_usage_total(
    usage_totals: dict[str, tuple[str, TokenUsage]],
    provider_id: str,
    provider_name: str,
    usage: TokenUsage,
) -> None:
    """Accumulate usage per provider id. Dict insertion order is first-seen order."""
    if provider_id not in usage_totals:
        usage_totals[provider_id] = (provider_name, TokenUsage())
    usage_totals[provider_id][1].add_from(usage)


def build_cross_agent_prompt(
    target_url: str,
    head_sha: str,
    self_id: str,
    self_name: str,
    comment_language: CommentLanguage,
    primary_results: list[ProviderRun],
) -> str:
    """Build the reaction prompt for one agent from everyone else's primary findings."""
    lines = [
        "You are participating in a multi-agent code review.",
        "Analyze other agents' findings and provide your perspective.",
        "Output language requirement:",
        comment_language.prompt_instruction(),
        "",
        f"Target URL: {target_url}",
        f"Head SHA: {head_sha}",
        "",
        "Other agents' findings:",
        "",
    ]
    for result in primary_results:
        if result.id == self_id:
            continue
        lines.append(f"## {result.name}")
        lines.append(result.body.strip())
        lines.append("")

    lines.append(f"Now write {self_name}'s reaction to other agents.")
    lines.append(
        "Use Markdown sections in this order: Agreements, Disagreements, Missed Risks, Suggested Resolution."
    )
    return "\n".join(lines) + "\n"
