"""Pipeline-scoped execution state shared by the stages of one run."""

from __future__ import annotations

from dataclasses import dataclass, field

from crossreview_core.models import ReviewComment
from crossreview_core.target import ReviewTarget
from crossreview_core.vcs.base import VcsGateway


@dataclass
class ExecutionContext:
    """State loaded once per run and threaded through every stage.

    ``comments`` mirrors the VCS comment thread. Stages upsert into it after
    each write so later stages see freshly posted comments without a refetch.
    It is only mutated between fan-out rounds, never concurrently.
    """

    config: dict
    target: ReviewTarget
    vcs: VcsGateway
    head_sha: str
    system_prompt: str
    comments: list[ReviewComment] = field(default_factory=list)

    @property
    def target_url(self) -> str:
        return self.target.url
