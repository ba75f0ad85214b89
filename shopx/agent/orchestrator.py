"""LangGraph-based transaction orchestrator.

Runs one shopping request end to end:

    plan -> search -> extract -> rank -> choose -> navigate -> checkout -> confirm
                                                                  |    ^
                                                                  v    |
                                                                 recover

Each node is one stage of the run. Checkout failures that exhaust their
retries route through ``recover`` once, which returns to the results page and
re-opens the already chosen item; the human is never asked twice and the
ranking is never redone. Any other exception ends the run.
"""

from __future__ import annotations

import asyncio
from typing import Literal, Optional, TypedDict

from langgraph.graph import END, START, StateGraph

from shopx.agent.checkout import Navigator
from shopx.agent.chooser import InteractiveChooser
from shopx.agent.planner import QueryPlanner
from shopx.agent.ranking import RankingSelector
from shopx.agent.retriever import CandidateRetriever
from shopx.core.config import Config, load_config
from shopx.core.errors import RetryExhaustedError, RunCancelledError, describe_error
from shopx.core.llm import CompletionService
from shopx.core.models import Candidate, OrderOutcome, RunStage
from shopx.core.notify import NotificationChannel
from shopx.core.retry import RetrySupervisor
from shopx.storefronts.base import PageAutomation


class RunState(TypedDict, total=False):
    """State carried between pipeline nodes."""

    prompt: str
    query: str
    candidates: list[Candidate]
    selection: list[Candidate]
    labels: list[str]
    chosen: Candidate
    screenshot: bytes
    recovery_cycles: int
    checkout_error: Optional[str]


class TransactionOrchestrator:
    """Sequences one request through planning, selection, and checkout.

    The orchestrator owns the page automation session for the duration of
    ``run()``: it is opened at the start and closed on every exit path.

    Usage:
        orchestrator = TransactionOrchestrator(page, completion, channel)
        outcome = await orchestrator.run("I want a white t-shirt")
        if outcome.success:
            Path("checkout.png").write_bytes(outcome.screenshot)
    """

    def __init__(
        self,
        page: PageAutomation,
        completion: CompletionService,
        channel: NotificationChannel,
        config: Config | None = None,
        supervisor: RetrySupervisor | None = None,
        cancel_event: asyncio.Event | None = None,
    ):
        self.config = config or load_config()
        self.page = page
        self.completion = completion
        self.channel = channel
        self.supervisor = supervisor or RetrySupervisor.from_config(channel, self.config.retry)
        self.cancel_event = cancel_event
        self.max_recovery_cycles = self.config.orchestrator.max_recovery_cycles

        self.planner = QueryPlanner(completion, self.supervisor, channel, self.config)
        self.retriever = CandidateRetriever(page, self.supervisor, channel)
        self.ranking = RankingSelector(completion, self.supervisor, channel, self.config)
        self.chooser = InteractiveChooser(completion, self.supervisor, channel, self.config)
        self.navigator = Navigator(
            page, self.supervisor, channel, checkout_attempts=self.config.orchestrator.checkout_attempts
        )

        self.stage = RunStage.PLANNING
        self._chosen: Candidate | None = None
        self._query: str | None = None
        self._recovery_cycles = 0
        self._graph = self._build_graph()

    # -------------------------------------------------------------------------
    # Pipeline nodes
    # -------------------------------------------------------------------------

    def _enter(self, stage: RunStage) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RunCancelledError(f"Run cancelled before {stage.value}")
        self.stage = stage
        print(f"[Orchestrator] {stage.value}")

    async def _plan(self, state: RunState) -> RunState:
        self._enter(RunStage.PLANNING)
        query = await self.planner.plan(state["prompt"])
        self._query = query
        await self.channel.send_message(f"Search query: {query}")
        return {"query": query}

    async def _search(self, state: RunState) -> RunState:
        self._enter(RunStage.SEARCHING)
        await self.retriever.search(state["query"])
        return {"query": state["query"]}

    async def _extract(self, state: RunState) -> RunState:
        self._enter(RunStage.EXTRACTING)
        return {"candidates": await self.retriever.extract()}

    async def _rank(self, state: RunState) -> RunState:
        self._enter(RunStage.RANKING)
        return {"selection": await self.ranking.rank(state["candidates"], state["prompt"])}

    async def _choose(self, state: RunState) -> RunState:
        self._enter(RunStage.AWAITING_CHOICE)
        selection = state["selection"]

        if self.config.orchestrator.simplify_labels:
            labels = await self.ranking.to_readable_labels(selection)
        else:
            labels = [c.title for c in selection]

        chosen = await self.chooser.choose(selection, labels)
        self._chosen = chosen

        details = [line for line in (chosen.brand, chosen.price) if line]
        await self.channel.send_message(f"Selected {chosen.title}", details or None)
        return {"labels": labels, "chosen": chosen}

    async def _navigate(self, state: RunState) -> RunState:
        self._enter(RunStage.NAVIGATING)
        await self.navigator.open(state["chosen"])
        return {"chosen": state["chosen"]}

    async def _checkout(self, state: RunState) -> RunState:
        self._enter(RunStage.CHECKING_OUT)
        try:
            screenshot = await self.navigator.initiate_checkout(state["chosen"])
        except RetryExhaustedError as e:
            if state.get("recovery_cycles", 0) >= self.max_recovery_cycles:
                raise
            print(f"[Orchestrator] Checkout exhausted its attempts, recovering: {e}")
            return {"checkout_error": describe_error(e)}
        return {"screenshot": screenshot, "checkout_error": None}

    async def _recover(self, state: RunState) -> RunState:
        self._enter(RunStage.RECOVERY_RETRY)
        chosen = state["chosen"]
        await self.channel.send_message(
            f"Checkout did not go through, retrying with {chosen.title}",
            [state["checkout_error"]] if state.get("checkout_error") else None,
        )
        await self.retriever.return_to_results()
        await self.navigator.open(chosen)
        self._recovery_cycles = state.get("recovery_cycles", 0) + 1
        return {"recovery_cycles": self._recovery_cycles}

    async def _confirm(self, state: RunState) -> RunState:
        self._enter(RunStage.CONFIRMED)
        await self.channel.send_message("Checkout reached")
        await self.channel.send_image(state["screenshot"])
        return {"screenshot": state["screenshot"]}

    def _after_checkout(self, state: RunState) -> Literal["recover", "confirm"]:
        if state.get("checkout_error"):
            return "recover"
        return "confirm"

    def _build_graph(self):
        workflow = StateGraph(RunState)

        workflow.add_node("plan", self._plan)
        workflow.add_node("search", self._search)
        workflow.add_node("extract", self._extract)
        workflow.add_node("rank", self._rank)
        workflow.add_node("choose", self._choose)
        workflow.add_node("navigate", self._navigate)
        workflow.add_node("checkout", self._checkout)
        workflow.add_node("recover", self._recover)
        workflow.add_node("confirm", self._confirm)

        workflow.add_edge(START, "plan")
        workflow.add_edge("plan", "search")
        workflow.add_edge("search", "extract")
        workflow.add_edge("extract", "rank")
        workflow.add_edge("rank", "choose")
        workflow.add_edge("choose", "navigate")
        workflow.add_edge("navigate", "checkout")
        workflow.add_conditional_edges("checkout", self._after_checkout, {"recover": "recover", "confirm": "confirm"})
        workflow.add_edge("recover", "checkout")
        workflow.add_edge("confirm", END)

        return workflow.compile()

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def run(self, user_prompt: str) -> OrderOutcome:
        """Run the full pipeline for one request.

        Returns:
            OrderOutcome describing success (with screenshot) or failure
        """
        self.stage = RunStage.PLANNING
        self._chosen = None
        self._query = None
        self._recovery_cycles = 0

        try:
            await self.page.open()
            final = await self._graph.ainvoke({"prompt": user_prompt, "recovery_cycles": 0})
        except Exception as e:
            reason = f"{self.stage.value} failed: {describe_error(e)}"
            print(f"[Orchestrator] {reason}")
            await self.channel.send_message(reason)
            return OrderOutcome.failed(
                self.stage,
                reason,
                chosen=self._chosen,
                recovery_cycles=self._recovery_cycles,
                query=self._query,
            )
        finally:
            await self.page.close()

        return OrderOutcome.confirmed(
            final["screenshot"],
            final["chosen"],
            recovery_cycles=final.get("recovery_cycles", 0),
            query=final.get("query"),
            labels=tuple(final.get("labels", [])),
        )
