"""Exception hierarchy for the review pipeline.

Callers (the CLI, CI wrappers) catch ReviewError and use the subclass to tell
a user-actionable problem apart from a host outage, a declined prompt, or a
bug. Agent failures never surface here: the fan-out engine turns them into
error placeholders in the published comments.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for every error that aborts a review run."""


class ConfigurationError(ReviewError):
    """Missing token, no enabled agents, unreadable review guide, bad URL."""


class VcsError(ReviewError):
    """A GitHub/GitLab API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {super().__str__()}"
        return super().__str__()


class AgentError(ReviewError):
    """An agent backend failed. Only raised inside backends; absorbed by the fan-out engine."""


class ReviewCancelled(ReviewError):
    """The user declined a confirmation prompt."""

    def __init__(self, message: str = "cancelled by user"):
        super().__init__(message)


class InternalError(ReviewError):
    """A pipeline invariant was violated. Indicates a programming defect."""
