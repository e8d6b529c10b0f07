"""
Models package exports.
"""
from models.api_models import Message, ChatRequest, ChatResponse, ErrorResponse
from models.chat_models import Content, GenerationConfig, ChatPayload

__all__ = [
    'Message',
    'ChatRequest',
    'ChatResponse',
    'ErrorResponse',
    'Content',
    'GenerationConfig',
    'ChatPayload'
]
