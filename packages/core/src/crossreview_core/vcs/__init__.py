"""VCS gateways. build_vcs_client picks the implementation from the parsed target."""

from __future__ import annotations

from crossreview_core.target import GitHubChange, GitLabChange, ReviewTarget
from crossreview_core.vcs.base import TRUNCATION_MARKER, VcsGateway, truncate_diff

__all__ = ["TRUNCATION_MARKER", "VcsGateway", "build_vcs_client", "truncate_diff"]


def build_vcs_client(target: ReviewTarget, host_cfg: dict | None, token: str | None) -> VcsGateway:
    api_base = (host_cfg or {}).get("api_base")

    if isinstance(target, GitHubChange):
        from crossreview_core.vcs.github import GitHubGateway

        return GitHubGateway(target, token=token, api_base=api_base)
    if isinstance(target, GitLabChange):
        from crossreview_core.vcs.gitlab import GitLabGateway

        return GitLabGateway(target, token=token, api_base=api_base)
    raise TypeError(f"Unsupported review target: {target!r}")
