"""Advisor chat grounded in the user's linked-account data."""

from typing import Dict, List, Optional, Sequence

from advisor_backend.config import AppSettings, settings
from advisor_backend.core.logging_config import logger
from advisor_backend.schemas.advisor import ChatMessage
from advisor_backend.services.aggregation.aggregator import SnapshotState
from advisor_backend.services.ai_agent.context_builder import build_financial_context
from advisor_backend.services.ai_agent.llm_client import CompletionBackend
from advisor_backend.services.ai_agent.model_registry import build_candidates, completion_params

APOLOGY_MESSAGE = "Sorry, I was unable to generate a response. Please try again."

ADVISOR_SYSTEM_PROMPT = """You are an expert AI financial advisor. You have access to the user's real financial data and should provide personalized, actionable advice based on their specific situation.

Here is the user's current financial data:

{financial_context}

Guidelines:
- Be specific and reference their actual account balances, spending patterns, and transactions
- Provide actionable recommendations tailored to their situation
- Flag any concerning spending patterns or opportunities for savings
- Be encouraging but honest about financial health
- Use dollar amounts and percentages when giving advice
- If they haven't connected accounts yet, encourage them to do so for personalized advice
- Format your responses clearly with headers and bullet points when appropriate
- Keep responses concise but thorough"""


class AdvisorChatEngine:
    """Answers one chat turn, trying each candidate model until one replies."""

    def __init__(self, backend: CompletionBackend, state: SnapshotState, app_settings: AppSettings = settings):
        self.backend = backend
        self.state = state
        self.settings = app_settings

    def candidate_models(self, model_hint: Optional[str] = None) -> List[str]:
        return build_candidates(model_hint or self.settings.DEFAULT_CHAT_MODEL, self.settings.FALLBACK_CHAT_MODEL)

    def build_messages(self, history: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        """Prepend the single system message; system turns sent by the client are dropped."""
        context = build_financial_context(self.state.current())
        system = {"role": "system", "content": ADVISOR_SYSTEM_PROMPT.format(financial_context=context)}
        return [system] + [
            {"role": m.role, "content": m.content} for m in history if m.role != "system"
        ]

    async def chat(self, history: Sequence[ChatMessage], model_hint: Optional[str] = None) -> ChatMessage:
        """Return the assistant reply; falls back to a fixed apology and never raises."""
        try:
            messages = self.build_messages(history)
        except Exception as e:
            logger.error("chat_context_failed", error=str(e), exc_info=True)
            return ChatMessage(role="assistant", content=APOLOGY_MESSAGE)

        for model in self.candidate_models(model_hint):
            params = completion_params(
                model,
                max_tokens=self.settings.CHAT_MAX_TOKENS,
                temperature=self.settings.DEFAULT_LLM_TEMPERATURE,
            )
            try:
                content = await self.backend.complete(model, messages, **params)
            except Exception as e:
                logger.error("chat_candidate_failed", model=model, error=str(e), error_type=type(e).__name__)
                continue

            if content and content.strip():
                logger.info("chat_candidate_succeeded", model=model, chars=len(content))
                return ChatMessage(role="assistant", content=content)

            logger.warning("chat_candidate_empty", model=model)

        return ChatMessage(role="assistant", content=APOLOGY_MESSAGE)
