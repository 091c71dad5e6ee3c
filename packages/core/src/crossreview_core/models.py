"""Review data models.

Everything here is created fresh for a single pipeline run and discarded when
it ends. The only state that outlives a run is the comment thread on the VCS
host, which the markers embedded in comment bodies turn into a tiny database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class RunOptions:
    """Per-invocation switches for ReviewPipeline.execute()."""

    url: str
    dry_run: bool = False  # render only, never write to the VCS
    force: bool = False  # re-review a SHA that is already claimed or reviewed


@dataclass
class ReviewComment:
    """One PR comment / MR note as currently known to the pipeline."""

    id: str
    body: str


class CommentLanguage(Enum):
    KOREAN = "ko"
    ENGLISH = "en"

    @classmethod
    def from_config(cls, value: str | None) -> CommentLanguage:
        """Parse the comment_language setting; unknown or missing values fall back to Korean."""
        if not value:
            return cls.KOREAN
        raw = value.strip().lower()
        if raw in ("en", "english"):
            return cls.ENGLISH
        return cls.KOREAN

    def prompt_instruction(self) -> str:
        if self is CommentLanguage.ENGLISH:
            return "Write the final answer in English only. Do not use Korean headings or body text."
        return "Write the final answer in Korean only. Do not use English headings or body text."


@dataclass(frozen=True)
class ReviewRequest:
    """Agent-agnostic input to a primary review, shared read-only by every agent."""

    target_url: str
    head_sha: str
    diff: str
    system_prompt: str
    comment_language: CommentLanguage = CommentLanguage.KOREAN


@dataclass
class TokenUsage:
    """Best-effort token accounting. Every field may be unknown (None)."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    def add_from(self, other: TokenUsage) -> None:
        """Merge other into self. Unknown + unknown stays unknown; unknown + n is n."""
        self.prompt_tokens = _sum_optional(self.prompt_tokens, other.prompt_tokens)
        self.completion_tokens = _sum_optional(self.completion_tokens, other.completion_tokens)
        self.total_tokens = _sum_optional(self.total_tokens, other.total_tokens)


@dataclass
class ProviderResponse:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class ProviderRun:
    """Primary-round result for one agent; feeds the cross-agent prompts."""

    id: str
    name: str
    body: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class AgentComment:
    """What gets published as one agent's individual comment."""

    provider_id: str
    provider_name: str
    body: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class AgentReaction:
    provider_name: str
    body: str


@dataclass(frozen=True)
class ReviewMarkers:
    final_marker: str
    claim_marker: str


@dataclass
class RunResult:
    """Outcome of one pipeline run.

    status is "skipped" when the dedup check found an existing claim or final
    summary for the head SHA, otherwise "completed". In dry-run mode the
    rendered markdown that would have been posted is returned here instead of
    being written.
    """

    status: str
    head_sha: str = ""
    agent_comment_refs: list[tuple[str, str]] = field(default_factory=list)
    reactions: list[AgentReaction] = field(default_factory=list)
    rendered_agent_comments: list[tuple[str, str]] = field(default_factory=list)
    final_markdown: str | None = None

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


def _sum_optional(a: int | None, b: int | None) -> int | None:
    if a is None and b is None:
        return None
    return (a or 0) + (b or 0)
