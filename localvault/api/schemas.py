from pydantic import BaseModel, Field
from typing import Any, Optional
from ..models import ChatMessage

class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    context: Optional[dict[str, Any]] = None

class ErrorResponse(BaseModel):
    error: str
