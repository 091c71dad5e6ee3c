"""Core multi-agent review orchestration."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from crossreview_core import config as cfg
from crossreview_core.agents import build_agents
from crossreview_core.agents.base import BaseAgent
from crossreview_core.claim import prepare_claim_comment
from crossreview_core.console import AutoConfirmer, Confirmer, Reporter
from crossreview_core.context import ExecutionContext
from crossreview_core.errors import ConfigurationError, ReviewCancelled
from crossreview_core.fanout import run_cross_agent_reactions, run_primary_reviews
from crossreview_core.models import AgentComment, ReviewRequest, RunOptions, RunResult, TokenUsage
from crossreview_core.policy import add_usage_total
from crossreview_core.publish import publish_agent_comments, publish_final_summary
from crossreview_core.target import ReviewTarget, parse_target
from crossreview_core.vcs import TRUNCATION_MARKER, VcsGateway, build_vcs_client

logger = logging.getLogger(__name__)


def _configured_token(_target: ReviewTarget, host_cfg: dict | None) -> str | None:
    """Default token lookup: only what the host section itself configures.

    Library callers get no environment-wide or CLI-session fallback; the
    command line passes its own resolver for that.
    """
    token, _ = cfg.resolve_configured_token(host_cfg)
    return token


class ReviewPipeline:
    """Run one multi-agent review from a PR/MR URL to a posted summary.

    Stages, in order:
        load context → claim decision (skip | continue) → build request →
        primary reviews → per-agent comments → cross-agent reactions →
        final summary (overwrites the claim)

    Every collaborator can be swapped by keyword: target parser, VCS factory,
    agent factory, token lookup, reporter and confirmer.
    Comments already posted before a failure stay posted; the next run's dedup
    check sees them.
    """

    def __init__(
        self,
        config: dict,
        *,
        target_resolver: Callable[[str], ReviewTarget] = parse_target,
        vcs_factory: Callable[[ReviewTarget, dict | None, str | None], VcsGateway] = build_vcs_client,
        agent_factory: Callable[[dict], Sequence[BaseAgent]] = build_agents,
        token_resolver: Callable[[ReviewTarget, dict | None], str | None] = _configured_token,
        reporter: Reporter | None = None,
        confirmer: Confirmer | None = None,
    ):
        self.config = config
        self.target_resolver = target_resolver
        self.vcs_factory = vcs_factory
        self.agent_factory = agent_factory
        self.token_resolver = token_resolver
        self.reporter = reporter or Reporter()
        self.confirmer = confirmer or AutoConfirmer()

    def execute(self, options: RunOptions) -> RunResult:
        """Run the pipeline. Raises ReviewError subclasses on fatal failures."""
        self.reporter.section("Session")
        self.reporter.kv("Target", options.url)
        self.reporter.kv("Mode", "dry-run" if options.dry_run else "post-comment")
        if options.force:
            self.reporter.kv("Force", "enabled")

        ctx, agents = self._load_execution_context(options)

        decision = prepare_claim_comment(ctx, options, self.reporter)
        if decision.skip:
            return RunResult(status="skipped", head_sha=ctx.head_sha)

        request = self._build_review_request(ctx)

        self.reporter.section("Providers (Primary Review)")
        self.reporter.kv("Enabled", str(len(agents)))
        primary = run_primary_reviews(agents, request, self.reporter)
        agent_comments = _in_agent_order(primary.agent_comments, agents)

        refs, rendered = publish_agent_comments(ctx, options, agent_comments, self.reporter)

        reactions = run_cross_agent_reactions(agents, request, primary.primary_results, self.reporter)

        final_markdown = publish_final_summary(
            ctx,
            options,
            decision.claim_comment_id,
            reactions,
            refs,
            _usage_rows(agent_comments),
            self.reporter,
        )

        return RunResult(
            status="completed",
            head_sha=ctx.head_sha,
            agent_comment_refs=refs,
            reactions=reactions,
            rendered_agent_comments=rendered,
            final_markdown=final_markdown,
        )

    def _load_execution_context(self, options: RunOptions) -> tuple[ExecutionContext, list[BaseAgent]]:
        """Resolve target, credentials, agents and prompt, then read head SHA and comments.

        Every configuration problem is raised before the first network call.
        """
        target = self.target_resolver(options.url)
        host_cfg = cfg.host_config(self.config, target.host)
        token = self.token_resolver(target, host_cfg)

        if not options.dry_run and not token:
            raise ConfigurationError(
                f"missing VCS token for host '{target.host}'. Configure hosts.{target.host}.token, "
                f"token_env or token_command in the config, or use --dry-run."
            )

        agents = list(self.agent_factory(self.config))
        if not agents:
            raise ConfigurationError(
                "no providers enabled. Configure providers.<name> with an API key or a command "
                "(and optionally args/use_stdin), and make sure the command is installed."
            )

        system_prompt = cfg.load_system_prompt(self.config)
        vcs = self.vcs_factory(target, host_cfg, token)

        self.reporter.section("Fetch Target")
        self.reporter.kv("Host", target.host)
        self.reporter.status("VCS", "fetching head SHA")
        head_sha = vcs.fetch_head_sha()
        self.reporter.kv("Head SHA", head_sha)

        comments = [] if options.dry_run else vcs.list_comments()
        logger.debug("Loaded %d existing comment(s)", len(comments))

        ctx = ExecutionContext(
            config=self.config,
            target=target,
            vcs=vcs,
            head_sha=head_sha,
            system_prompt=system_prompt,
            comments=comments,
        )
        return ctx, agents

    def _build_review_request(self, ctx: ExecutionContext) -> ReviewRequest:
        max_bytes = cfg.max_diff_bytes(self.config)

        self.reporter.status("VCS", "fetching diff")
        diff = ctx.vcs.fetch_diff(max_bytes)
        size = len(diff.encode("utf-8"))
        self.reporter.kv("Diff Bytes", str(size))

        if size > max_bytes:
            message = f"warning: diff size ({size} bytes) exceeds max_diff_bytes ({max_bytes} bytes)."
            if diff.endswith(TRUNCATION_MARKER):
                message += " Agents will only see the truncated diff."
            if not self.confirmer.confirm(message):
                raise ReviewCancelled()

        self.reporter.section("Prompt")
        guide = ctx.config.get("defaults", {}).get("review_guide_path")
        self.reporter.kv("Guide", guide or "not set")

        return ReviewRequest(
            target_url=ctx.target_url,
            head_sha=ctx.head_sha,
            diff=diff,
            system_prompt=ctx.system_prompt,
            comment_language=cfg.comment_language(self.config),
        )


def _in_agent_order(agent_comments: list[AgentComment], agents: Sequence[BaseAgent]) -> list[AgentComment]:
    """Reorder completion-ordered comments to match the configured agent order."""
    position = {agent.id: idx for idx, agent in enumerate(agents)}
    return sorted(agent_comments, key=lambda c: position.get(c.provider_id, len(position)))


def _usage_rows(agent_comments: list[AgentComment]) -> list[tuple[str, TokenUsage]]:
    totals: dict[str, tuple[str, TokenUsage]] = {}
    for comment in agent_comments:
        add_usage_total(totals, comment.provider_id, comment.provider_name, comment.usage)
    return list(totals.values())
