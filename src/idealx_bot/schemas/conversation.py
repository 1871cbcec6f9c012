"""Pydantic schemas for model input.

Defines ConversationTurn and UrlContent models.
"""

from typing import Literal
from pydantic import BaseModel

class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class UrlContent(BaseModel):
    url: str
    content: str
