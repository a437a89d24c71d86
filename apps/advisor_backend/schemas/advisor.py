"""Request and response schemas for the advisor endpoints."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single message in the advisor conversation."""
    role: Literal["user", "assistant", "system"] = Field(..., description="Author of the message")
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    """Conversation history resent by the client on every turn."""
    messages: List[ChatMessage] = Field(..., min_length=1, description="Ordered conversation history")
    model: Optional[str] = Field(default=None, description="Preferred model identifier")


class ChatResponse(BaseModel):
    message: ChatMessage


class Insight(BaseModel):
    """Short actionable observation generated from the user's financial data."""
    title: str = Field(..., description="Short heading")
    description: str = Field(..., description="One or two sentences")
    type: Literal["warning", "tip", "positive", "action"]


class InsightsResponse(BaseModel):
    insights: List[Insight] = Field(default_factory=list)


class ModelOption(BaseModel):
    id: str
    name: str
    description: str


class ModelsResponse(BaseModel):
    models: List[ModelOption]
    default: str
