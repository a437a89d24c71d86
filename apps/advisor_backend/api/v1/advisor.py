"""AI advisor endpoints: model catalogue, grounded chat and proactive insights."""

from fastapi import APIRouter, Depends

from advisor_backend.api.deps import get_chat_engine, get_insight_generator
from advisor_backend.config import settings
from advisor_backend.core.logging_config import logger
from advisor_backend.schemas.advisor import (
    ChatRequest,
    ChatResponse,
    InsightsResponse,
    ModelsResponse,
)
from advisor_backend.services.ai_agent.advisor_chat import AdvisorChatEngine
from advisor_backend.services.ai_agent.insight_generator import InsightGenerator
from advisor_backend.services.ai_agent.model_registry import AVAILABLE_MODELS

router = APIRouter()


@router.get("/models", response_model=ModelsResponse)
async def list_models() -> ModelsResponse:
    return ModelsResponse(models=AVAILABLE_MODELS, default=settings.DEFAULT_CHAT_MODEL)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    chat_request: ChatRequest,
    engine: AdvisorChatEngine = Depends(get_chat_engine),
) -> ChatResponse:
    """Answer the latest turn of the conversation.

    Args:
        chat_request: Full conversation history and an optional model.
        engine: The advisor chat engine.

    Returns:
        ChatResponse: The assistant reply, or a fixed apology when no model answered.
    """
    logger.info(
        "chat_request_received",
        message_count=len(chat_request.messages),
        model=chat_request.model,
    )
    message = await engine.chat(chat_request.messages, chat_request.model)
    return ChatResponse(message=message)


@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    generator: InsightGenerator = Depends(get_insight_generator),
) -> InsightsResponse:
    """Return four proactive insights, or none when they cannot be generated right now."""
    try:
        insights = await generator.generate_insights()
    except Exception as e:
        logger.error("insights_request_failed", error=str(e), exc_info=True)
        insights = []
    return InsightsResponse(insights=insights)
