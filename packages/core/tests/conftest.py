"""In-memory VCS gateway and stub agents shared by the pipeline-level tests."""

import pytest

from crossreview_core.agents.base import BaseAgent
from crossreview_core.console import QuietReporter
from crossreview_core.models import ProviderResponse, ReviewComment, TokenUsage
from crossreview_core.vcs.base import VcsGateway, truncate_diff


class FakeGateway(VcsGateway):
    """A single PR/MR held in memory. Records every write."""

    def __init__(self, head_sha="sha-1", diff="+added line\n", comments=None):
        self.head_sha = head_sha
        self.diff = diff
        self.comments: list[ReviewComment] = list(comments or [])
        self.created: list[str] = []
        self.updated: list[tuple[str, str]] = []
        self.list_calls = 0
        self.fail_create = None
        self._next_id = 100

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.updated)

    def fetch_head_sha(self) -> str:
        return self.head_sha

    def fetch_diff(self, max_bytes: int) -> str:
        return truncate_diff(self.diff, max_bytes)

    def list_comments(self) -> list[ReviewComment]:
        self.list_calls += 1
        return [ReviewComment(id=c.id, body=c.body) for c in self.comments]

    def create_comment(self, body: str) -> ReviewComment:
        if self.fail_create is not None:
            raise self.fail_create
        self._next_id += 1
        comment = ReviewComment(id=str(self._next_id), body=body)
        self.comments.append(comment)
        self.created.append(comment.id)
        return ReviewComment(id=comment.id, body=body)

    def update_comment(self, comment_id: str, body: str) -> ReviewComment:
        for comment in self.comments:
            if comment.id == comment_id:
                comment.body = body
                self.updated.append((comment_id, body))
                return ReviewComment(id=comment_id, body=body)
        raise KeyError(comment_id)

    def bodies_containing(self, marker: str) -> list[str]:
        return [c.body for c in self.comments if marker in c.body]


class StubAgent(BaseAgent):
    """Agent with canned answers. ``review_error`` makes the primary review fail.

    ``wait_for`` blocks the primary review until the event is set, usually by
    a :class:`GateReporter` once another agent's result has been collected.
    """

    MAX_RETRIES = 1

    def __init__(
        self,
        provider_id,
        name,
        review_body="looks fine",
        reaction_body=None,
        review_error=None,
        usage=None,
        wait_for=None,
    ):
        super().__init__(provider_id, name)
        self.review_body = review_body
        self.reaction_body = reaction_body or f"{name} reacts"
        self.review_error = review_error
        self.usage = usage or TokenUsage()
        self.wait_for = wait_for
        self.primary_prompts: list[str] = []
        self.reaction_prompts: list[str] = []

    def review(self, request):
        self.primary_prompts.append(self._build_primary_prompt(request))
        if self.wait_for is not None:
            assert self.wait_for.wait(timeout=5)
        if self.review_error is not None:
            raise self.review_error
        return ProviderResponse(content=self.review_body, usage=self.usage)

    def review_prompt(self, prompt):
        self.reaction_prompts.append(prompt)
        return ProviderResponse(content=self.reaction_body)

    def _call_api(self, prompt):
        raise AssertionError("StubAgent overrides review() and review_prompt()")


class GateReporter(QuietReporter):
    """Sets ``event`` when ``provider`` is reported finished.

    Status lines are printed on the collecting thread, so by the time the event
    fires the provider's result is already in hand.
    """

    def __init__(self, provider, event):
        super().__init__()
        self.provider = provider
        self.event = event

    def provider_status(self, provider, status, extra=None):
        if provider == self.provider and status in ("done", "error"):
            self.event.set()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def reporter():
    return QuietReporter()
