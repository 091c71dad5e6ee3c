"""Resolve a PR/MR URL into the change it identifies.

Supported shapes:
    https://<host>/<owner>/<repo>/pull/<number>                 → GitHubChange
    https://<host>/<group>/.../<project>/-/merge_requests/<iid> → GitLabChange

Detection is by path shape, not by hostname, so GitHub Enterprise and
self-hosted GitLab instances work without configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from urllib.parse import urlparse

from crossreview_core.errors import ConfigurationError


@dataclass(frozen=True)
class GitHubChange:
    host: str
    owner: str
    repo: str
    number: int
    url: str

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class GitLabChange:
    host: str
    project_path: str
    iid: int
    url: str


ReviewTarget = Union[GitHubChange, GitLabChange]


def parse_target(url: str) -> ReviewTarget:
    """Parse a PR/MR URL. Raises ConfigurationError for anything unrecognised."""
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigurationError(f"unsupported URL format: {url}")

    host = parsed.hostname
    segments = [s for s in parsed.path.split("/") if s]

    target = _parse_github(host, segments, url) or _parse_gitlab(host, segments, url)
    if target is None:
        raise ConfigurationError(f"unsupported URL format: {url}")
    return target


def _parse_github(host: str, segments: list[str], url: str) -> GitHubChange | None:
    # /owner/repo/pull/<number>[/files|/commits...]
    if len(segments) < 4 or segments[2] != "pull":
        return None
    if not segments[3].isdigit():
        return None
    return GitHubChange(host=host, owner=segments[0], repo=segments[1], number=int(segments[3]), url=url)


def _parse_gitlab(host: str, segments: list[str], url: str) -> GitLabChange | None:
    # /group/subgroup/project/-/merge_requests/<iid>[/diffs...]
    if "-" not in segments:
        return None
    sep = segments.index("-")
    if sep == 0 or sep + 2 >= len(segments):
        return None
    if segments[sep + 1] != "merge_requests" or not segments[sep + 2].isdigit():
        return None
    return GitLabChange(host=host, project_path="/".join(segments[:sep]), iid=int(segments[sep + 2]), url=url)
