from __future__ import annotations

import logging
from urllib.parse import quote

import requests

from crossreview_core.errors import VcsError
from crossreview_core.models import ReviewComment
from crossreview_core.target import GitLabChange
from crossreview_core.vcs.base import VcsGateway, truncate_diff

logger = logging.getLogger(__name__)

_TIMEOUT = 30
_PER_PAGE = 100


def api_base_for(host: str, override: str | None = None) -> str:
    if override:
        return override.rstrip("/")
    return f"https://{host}/api/v4"


class GitLabGateway(VcsGateway):
    """Merge request operations over the GitLab REST API (v4).

    Comments are MR notes. Listing requests oldest-first so marker lookups
    see notes in creation order, the same order GitHub returns issue comments.
    """

    def __init__(
        self,
        target: GitLabChange,
        token: str | None = None,
        api_base: str | None = None,
        session: requests.Session | None = None,
    ):
        self._target = target
        self._base = api_base_for(target.host, api_base)
        self.session = session or requests.Session()
        if token:
            self.session.headers["PRIVATE-TOKEN"] = token

    @property
    def merge_request_endpoint(self) -> str:
        project = quote(self._target.project_path, safe="")
        return f"{self._base}/projects/{project}/merge_requests/{self._target.iid}"

    @property
    def notes_endpoint(self) -> str:
        return f"{self.merge_request_endpoint}/notes"

    def _request(self, method: str, url: str, action: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, url, timeout=_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise VcsError(f"gitlab: failed to {action}: {e}") from e
        if not resp.ok:
            raise VcsError(f"gitlab: failed to {action}: {resp.text}", status_code=resp.status_code)
        return resp

    def _json(self, resp: requests.Response, action: str):
        try:
            return resp.json()
        except ValueError as e:
            raise VcsError(f"gitlab: invalid JSON while trying to {action}") from e

    def fetch_head_sha(self) -> str:
        resp = self._request("GET", self.merge_request_endpoint, "fetch MR")
        mr = self._json(resp, "fetch MR")
        sha = mr.get("sha") or (mr.get("diff_refs") or {}).get("head_sha")
        if not sha:
            raise VcsError("gitlab: MR response missing sha and diff_refs.head_sha")
        return sha

    def fetch_diff(self, max_bytes: int) -> str:
        resp = self._request("GET", f"{self.merge_request_endpoint}/changes", "fetch MR changes")
        changes = self._json(resp, "fetch MR changes").get("changes", [])
        joined = "\n".join(c.get("diff", "") for c in changes)
        return truncate_diff(joined, max_bytes)

    def list_comments(self) -> list[ReviewComment]:
        comments: list[ReviewComment] = []
        page = "1"
        while page:
            resp = self._request(
                "GET",
                self.notes_endpoint,
                "list notes",
                params={"sort": "asc", "order_by": "created_at", "per_page": _PER_PAGE, "page": page},
            )
            for note in self._json(resp, "list notes"):
                comments.append(ReviewComment(id=str(note["id"]), body=note.get("body") or ""))
            page = resp.headers.get("X-Next-Page", "")
        return comments

    def create_comment(self, body: str) -> ReviewComment:
        resp = self._request("POST", self.notes_endpoint, "create note", json={"body": body})
        note = self._json(resp, "create note")
        logger.debug("Created GitLab note %s", note["id"])
        return ReviewComment(id=str(note["id"]), body=note.get("body") or "")

    def update_comment(self, comment_id: str, body: str) -> ReviewComment:
        resp = self._request(
            "PUT", f"{self.notes_endpoint}/{comment_id}", f"update note {comment_id}", json={"body": body}
        )
        note = self._json(resp, "update note")
        logger.debug("Updated GitLab note %s", comment_id)
        return ReviewComment(id=str(note["id"]), body=note.get("body") or "")
