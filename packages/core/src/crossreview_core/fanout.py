"""Concurrent agent execution: the primary review round and the cross-agent round.

Both rounds submit one task per agent to a thread pool and collect results
as they complete. A failing agent never cancels or blocks the others: its
exception is caught inside its own task and turned into an "_Error: ..._"
body, so every agent still produces visible output.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Sequence, TypeVar

from crossreview_core.agents.base import BaseAgent
from crossreview_core.console import Reporter
from crossreview_core.models import AgentComment, AgentReaction, ProviderRun, ReviewRequest, TokenUsage
from crossreview_core.policy import build_cross_agent_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PrimaryReviewOutcome:
    primary_results: list[ProviderRun] = field(default_factory=list)
    agent_comments: list[AgentComment] = field(default_factory=list)


def error_body(error: BaseException) -> str:
    return f"_Error: {error}_"


def _fan_out(
    agents: Sequence[BaseAgent],
    reporter: Reporter,
    run: Callable[[BaseAgent], T],
    on_error: Callable[[BaseAgent, Exception], T],
) -> list[T]:
    """Run ``run(agent)`` for every agent concurrently; results in completion order."""

    def task(agent: BaseAgent) -> tuple[BaseAgent, T, bool, float]:
        started = time.monotonic()
        try:
            result = run(agent)
            failed = False
        except Exception as e:
            logger.warning("%s failed: %s", agent.name, e)
            result = on_error(agent, e)
            failed = True
        return agent, result, failed, time.monotonic() - started

    results: list[T] = []
    with ThreadPoolExecutor(max_workers=max(len(agents), 1), thread_name_prefix="crossreview-agent") as pool:
        futures = []
        for agent in agents:
            reporter.provider_status(agent.name, "running")
            futures.append(pool.submit(task, agent))

        for future in as_completed(futures):
            agent, result, failed, elapsed = future.result()
            reporter.provider_status(agent.name, "error" if failed else "done", f"{elapsed:.1f}s")
            results.append(result)
    return results


def run_primary_reviews(
    agents: Sequence[BaseAgent], request: ReviewRequest, reporter: Reporter
) -> PrimaryReviewOutcome:
    """Every agent reviews the same request; all tasks are joined before returning."""

    def run(agent: BaseAgent) -> ProviderRun:
        response = agent.review(request)
        return ProviderRun(id=agent.id, name=agent.name, body=response.content, usage=response.usage)

    def on_error(agent: BaseAgent, error: Exception) -> ProviderRun:
        return ProviderRun(id=agent.id, name=agent.name, body=error_body(error), usage=TokenUsage())

    primary_results = _fan_out(agents, reporter, run, on_error)
    agent_comments = [
        AgentComment(provider_id=r.id, provider_name=r.name, body=r.body, usage=r.usage) for r in primary_results
    ]
    return PrimaryReviewOutcome(primary_results=primary_results, agent_comments=agent_comments)


def run_cross_agent_reactions(
    agents: Sequence[BaseAgent],
    request: ReviewRequest,
    primary_results: list[ProviderRun],
    reporter: Reporter,
) -> list[AgentReaction]:
    """Each agent reacts to every other agent's primary findings.

    Returns an empty list when fewer than two agents are enabled.
    """
    if len(agents) < 2:
        return []

    reporter.section("Providers (Cross-Agent Reactions)")

    def run(agent: BaseAgent) -> AgentReaction:
        prompt = build_cross_agent_prompt(
            request.target_url,
            request.head_sha,
            agent.id,
            agent.name,
            request.comment_language,
            primary_results,
        )
        response = agent.review_prompt(prompt)
        return AgentReaction(provider_name=agent.name, body=response.content)

    def on_error(agent: BaseAgent, error: Exception) -> AgentReaction:
        return AgentReaction(provider_name=agent.name, body=error_body(error))

    return _fan_out(agents, reporter, run, on_error)
