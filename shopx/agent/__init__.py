"""Transaction pipeline for the shopx agent.

Main components:
- planner: search query planning
- retriever: storefront search and candidate extraction
- ranking: LLM-assisted ranking and label simplification
- chooser: human-in-the-loop selection
- checkout: product navigation and checkout initiation
- orchestrator: the LangGraph pipeline tying the stages together
"""

from shopx.core.models import Candidate, OrderOutcome, RunStage
from shopx.agent.orchestrator import TransactionOrchestrator

__all__ = [
    "Candidate",
    "OrderOutcome",
    "RunStage",
    "TransactionOrchestrator",
]
