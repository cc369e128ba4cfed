"""
Chat Message Model
==================
A single chat-completion message.

Fields:
    role     — system / user / assistant
    content  — message text
"""
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    role: Role
    content: str
