from __future__ import annotations

import logging
from contextlib import contextmanager

import requests
from github import Auth, Github, GithubException

from crossreview_core.errors import VcsError
from crossreview_core.models import ReviewComment
from crossreview_core.target import GitHubChange
from crossreview_core.vcs.base import VcsGateway, truncate_diff

logger = logging.getLogger(__name__)

_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
_TIMEOUT = 30


def api_base_for(host: str, override: str | None = None) -> str:
    """github.com uses the public API; any other host is treated as GitHub Enterprise."""
    if override:
        return override.rstrip("/")
    if host == "github.com":
        return "https://api.github.com"
    return f"https://{host}/api/v3"


@contextmanager
def _github_errors(action: str):
    try:
        yield
    except GithubException as e:
        message = e.data.get("message") if isinstance(e.data, dict) else e.data
        raise VcsError(f"github: failed to {action}: {message}", status_code=e.status) from e
    except requests.RequestException as e:
        raise VcsError(f"github: failed to {action}: {e}") from e


class GitHubGateway(VcsGateway):
    """Pull request operations backed by PyGithub.

    Review comments are posted as issue comments on the PR (the conversation
    tab), not as inline review comments, so they can be edited in place. The
    unified diff is fetched with plain requests since PyGithub only exposes
    per-file patches.
    """

    def __init__(
        self,
        target: GitHubChange,
        token: str | None = None,
        api_base: str | None = None,
        client=None,
        session: requests.Session | None = None,
    ):
        self._target = target
        self._base = api_base_for(target.host, api_base)
        if client is None:
            client = Github(auth=Auth.Token(token), base_url=self._base) if token else Github(base_url=self._base)
        self._gh = client
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = "crossreview"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self._pull = None

    def _get_pull(self):
        if self._pull is None:
            with _github_errors(f"fetch PR {self._target.repo_slug}#{self._target.number}"):
                repo = self._gh.get_repo(self._target.repo_slug)
                self._pull = repo.get_pull(self._target.number)
        return self._pull

    def fetch_head_sha(self) -> str:
        pull = self._get_pull()
        with _github_errors("read head SHA"):
            return pull.head.sha

    def fetch_diff(self, max_bytes: int) -> str:
        url = f"{self._base}/repos/{self._target.repo_slug}/pulls/{self._target.number}"
        with _github_errors("fetch PR diff"):
            resp = self.session.get(url, headers={"Accept": _DIFF_MEDIA_TYPE}, timeout=_TIMEOUT)
        if not resp.ok:
            raise VcsError(f"github: failed to fetch PR diff: {resp.text}", status_code=resp.status_code)
        return truncate_diff(resp.text, max_bytes)

    def list_comments(self) -> list[ReviewComment]:
        pull = self._get_pull()
        with _github_errors("list comments"):
            return [ReviewComment(id=str(c.id), body=c.body or "") for c in pull.get_issue_comments()]

    def create_comment(self, body: str) -> ReviewComment:
        pull = self._get_pull()
        with _github_errors("create comment"):
            comment = pull.create_issue_comment(body)
        logger.debug("Created GitHub comment %s", comment.id)
        return ReviewComment(id=str(comment.id), body=comment.body or "")

    def update_comment(self, comment_id: str, body: str) -> ReviewComment:
        pull = self._get_pull()
        with _github_errors(f"update comment {comment_id}"):
            comment = pull.get_issue_comment(int(comment_id))
            # edit() refreshes the object's attributes from the API response.
            comment.edit(body)
        logger.debug("Updated GitHub comment %s", comment_id)
        return ReviewComment(id=str(comment.id), body=comment.body or "")
