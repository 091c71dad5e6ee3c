"""Base review agent implementing the Template Method pattern.

All agents share the same contract:
    review(request)        → _build_primary_prompt() → _call_with_retry() → _call_api()
    review_prompt(prompt)  →                           _call_with_retry() → _call_api()

Subclasses implement two things only:
  - __init__: validate and store the SDK client or command spec
  - _call_api: run one prompt through the backend and return a ProviderResponse

Whether a provider talks to an HTTP API or shells out to a local CLI is
decided once, when the agent is constructed (see build_agents). The
pipeline only ever sees this interface.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from crossreview_core.errors import AgentError
from crossreview_core.models import ProviderResponse, ReviewRequest

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 4096


class BaseAgent(ABC):
    """One external reviewer.

    Instances must be safe to call concurrently with *other* agents; the
    fan-out engine never runs two calls on the same agent at once.
    """

    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, provider_id: str, name: str):
        self._id = provider_id
        self._name = name

    @property
    def id(self) -> str:
        """Stable identifier used in markers and usage totals."""
        return self._id

    @property
    def name(self) -> str:
        """Display name used in comment headings."""
        return self._name

    @property
    def backend(self) -> str:
        return "api"

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, request: ReviewRequest) -> ProviderResponse:
        """Run the primary review for a diff."""
        return self._call_with_retry(self._build_primary_prompt(request))

    def review_prompt(self, prompt: str) -> ProviderResponse:
        """Run an arbitrary prompt, used for the cross-agent reaction round."""
        return self._call_with_retry(prompt)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each backend                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str) -> ProviderResponse:
        """Run one prompt and return the response. Raise on failure."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, prompt: str) -> ProviderResponse:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff.

        The last failure is re-raised as AgentError so the fan-out engine can
        turn it into a visible error placeholder.
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error("%s failed after %d attempt(s): %s", self.name, self.MAX_RETRIES, e)
                    if isinstance(e, AgentError):
                        raise
                    raise AgentError(f"{self.name}: {e}") from e
                delay = 2**attempt
                logger.warning(
                    "%s error (attempt %d/%d): %s. Retrying in %ds...",
                    self.name,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise AgentError(f"{self.name}: no attempts made")  # MAX_RETRIES < 1

    def _build_primary_prompt(self, request: ReviewRequest) -> str:
        return f"System instructions:\n{request.system_prompt}\n\n{build_user_prompt(request)}"


def build_user_prompt(request: ReviewRequest) -> str:
    """Build the diff-carrying half of the primary review prompt."""
    return (
        f"Target URL: {request.target_url}\n"
        f"Head SHA: {request.head_sha}\n\n"
        "Please review this diff and return concise Markdown findings.\n"
        f"{request.comment_language.prompt_instruction()}\n\n"
        f"```diff\n{request.diff}\n```"
    )
