"""
Pydantic data models for API requests and responses.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel


class Message(BaseModel):
    """Chat message model."""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Relay request with the new prompt and the conversation so far."""
    prompt: Optional[str] = None
    conversation: Optional[List[Message]] = None


class ChatResponse(BaseModel):
    """Successful relay response."""
    response: str


class ErrorResponse(BaseModel):
    """Uniform error body."""
    error: str
    details: Optional[str] = None
