"""Abstract VCS gateway.

The pipeline only ever talks to a PR/MR through these five operations, so
GitHub and GitLab are swappable without touching orchestration code. Every
operation may raise VcsError; the pipeline treats that as fatal for the run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from crossreview_core.models import ReviewComment

TRUNCATION_MARKER = "\n... (diff truncated)\n"


class VcsGateway(ABC):
    @abstractmethod
    def fetch_head_sha(self) -> str:
        """Return the current head commit SHA of the PR/MR."""

    @abstractmethod
    def fetch_diff(self, max_bytes: int) -> str:
        """Return the unified diff, truncated to max_bytes (see truncate_diff)."""

    @abstractmethod
    def list_comments(self) -> list[ReviewComment]:
        """Return top-level comments/notes in host listing order."""

    @abstractmethod
    def create_comment(self, body: str) -> ReviewComment:
        """Post a new top-level comment/note."""

    @abstractmethod
    def update_comment(self, comment_id: str, body: str) -> ReviewComment:
        """Replace the body of an existing comment/note."""


def truncate_diff(diff: str, max_bytes: int) -> str:
    """Cut diff to at most max_bytes of UTF-8 and append TRUNCATION_MARKER.

    The cut never splits a multi-byte character: a partial trailing sequence
    is dropped rather than decoded into a replacement character.
    """
    encoded = diff.encode("utf-8")
    if len(encoded) <= max_bytes:
        return diff
    cut = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return cut + TRUNCATION_MARKER
