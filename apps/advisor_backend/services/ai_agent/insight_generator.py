"""Proactive insight generation from the user's linked-account data.

The model is asked for exactly four insights as a bare JSON array. Replies
are decoded leniently and validated; any failure moves on to the next
candidate model, and when every candidate fails the result is an empty list.
"""

from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from advisor_backend.config import AppSettings, settings
from advisor_backend.core.logging_config import logger
from advisor_backend.models.financial import Snapshot
from advisor_backend.schemas.advisor import Insight
from advisor_backend.services.aggregation.aggregator import SnapshotState
from advisor_backend.services.ai_agent.context_builder import build_financial_context
from advisor_backend.services.ai_agent.llm_client import CompletionBackend
from advisor_backend.services.ai_agent.model_registry import build_candidates, completion_params
from advisor_backend.utils.json_extraction import extract_json_array

INSIGHT_COUNT = 4

INSIGHTS_SYSTEM_PROMPT = """You are an expert financial advisor. Analyze the following financial data and provide exactly 4 brief, actionable insights. Each insight should be a JSON object with "title" (short heading), "description" (1-2 sentences), and "type" (one of: "warning", "tip", "positive", "action").

Return ONLY a valid JSON array, no markdown or other text.

Financial Data:
{financial_context}"""

INSIGHTS_USER_PROMPT = "Provide 4 proactive financial insights based on my data."

_insight_list_adapter = TypeAdapter(List[Insight])


class InsightParseError(ValueError):
    """Raised when a model reply does not hold exactly four valid insights."""


def parse_insights(content: Optional[str]) -> List[Insight]:
    """Decode a model reply into insights.

    Raises:
        InsightParseError: If no JSON array is found, an item is invalid, or
            the array does not hold exactly four insights.
    """
    raw = extract_json_array(content, default=None)
    if raw is None:
        raise InsightParseError("no JSON array in model reply")

    try:
        insights = _insight_list_adapter.validate_python(raw)
    except ValidationError as e:
        raise InsightParseError(f"invalid insight objects: {e.error_count()} errors") from e

    if len(insights) != INSIGHT_COUNT:
        raise InsightParseError(f"expected {INSIGHT_COUNT} insights, got {len(insights)}")
    return insights


class InsightGenerator:
    """Requests structured insights, falling back across candidate models."""

    def __init__(self, backend: CompletionBackend, state: SnapshotState, app_settings: AppSettings = settings):
        self.backend = backend
        self.state = state
        self.settings = app_settings

    def candidate_models(self) -> List[str]:
        return build_candidates(*self.settings.INSIGHT_MODELS)

    def _build_messages(self, snapshot: Snapshot) -> List[Dict[str, Any]]:
        context = build_financial_context(snapshot)
        return [
            {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT.format(financial_context=context)},
            {"role": "user", "content": INSIGHTS_USER_PROMPT},
        ]

    async def generate_insights(self, snapshot: Optional[Snapshot] = None) -> List[Insight]:
        """Return exactly four insights, or an empty list. Never raises."""
        snapshot = snapshot if snapshot is not None else self.state.current()
        if not snapshot.accounts:
            return []

        try:
            messages = self._build_messages(snapshot)
        except Exception as e:
            logger.error("insights_context_failed", error=str(e), exc_info=True)
            return []

        for model in self.candidate_models():
            params = completion_params(
                model,
                max_tokens=self.settings.INSIGHTS_MAX_TOKENS,
                temperature=self.settings.DEFAULT_LLM_TEMPERATURE,
            )
            try:
                content = await self.backend.complete(model, messages, **params)
                insights = parse_insights(content)
            except InsightParseError as e:
                logger.warning("insights_parse_failed", model=model, error=str(e))
                continue
            except Exception as e:
                logger.error("insights_candidate_failed", model=model, error=str(e), error_type=type(e).__name__)
                continue

            logger.info("insights_generated", model=model, count=len(insights))
            return insights

        return []
