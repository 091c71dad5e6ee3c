"""SHA-based dedup and the in-progress claim comment."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from crossreview_core import render
from crossreview_core.context import ExecutionContext
from crossreview_core.console import Reporter
from crossreview_core.models import RunOptions
from crossreview_core.policy import find_comment_with_marker, markers_for_sha, upsert_comment_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimDecision:
    """Skip when the head SHA is already claimed or reviewed; otherwise Continue.

    On Continue outside dry-run, ``claim_comment_id`` is the comment the final
    summary will later overwrite.
    """

    skip: bool
    claim_comment_id: str | None = None

    @classmethod
    def skipped(cls) -> ClaimDecision:
        return cls(skip=True)

    @classmethod
    def proceed(cls, claim_comment_id: str | None) -> ClaimDecision:
        return cls(skip=False, claim_comment_id=claim_comment_id)


def prepare_claim_comment(ctx: ExecutionContext, options: RunOptions, reporter: Reporter) -> ClaimDecision:
    """Decide Skip vs Continue and, when continuing, post or refresh the claim comment.

    Write failures propagate; there is no retry at this layer.
    """
    if options.dry_run:
        return ClaimDecision.proceed(None)

    markers = markers_for_sha(ctx.head_sha)
    final_comment = find_comment_with_marker(ctx.comments, markers.final_marker)
    claim_comment = find_comment_with_marker(ctx.comments, markers.claim_marker)

    if not options.force and (final_comment is not None or claim_comment is not None):
        logger.info("Head SHA %s already claimed or reviewed; skipping.", ctx.head_sha)
        reporter.status("Dedup", "already claimed/reviewed for current SHA; skipping")
        return ClaimDecision.skipped()

    reuse = claim_comment or (final_comment if options.force else None)
    claim_markdown = render.render_claim(ctx.head_sha, ctx.target_url)

    if reuse is not None:
        updated = ctx.vcs.update_comment(reuse.id, claim_markdown)
        upsert_comment_cache(ctx.comments, updated)
        reporter.status("Claim", "updated existing claim comment")
        return ClaimDecision.proceed(reuse.id)

    created = ctx.vcs.create_comment(claim_markdown)
    upsert_comment_cache(ctx.comments, created)
    reporter.status("Claim", "created claim comment")
    return ClaimDecision.proceed(created.id)
