"""
Completion Request Model
========================
Body of an OpenAI-compatible ``POST /chat/completions`` call.

Fields:
    model     — chat model identifier
    messages  — ordered messages; order is preserved on the wire
    stream    — ask the server for server-sent chunks instead of one body
"""
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .message import Message


class CompletionRequest(BaseModel):
    model: str
    messages: List[Message] = Field(default_factory=list)
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the API; ``stream`` is only sent when enabled."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.model_dump(mode="json") for m in self.messages],
        }
        if self.stream:
            payload["stream"] = True
        return payload
