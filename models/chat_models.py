"""
Data models for the model API wire format.
Contains conversation contents, generation parameters and the request payload.
"""
from dataclasses import dataclass, field
from typing import Optional

from config import Config
from models.api_models import Message
from utils.constants import Role


@dataclass(frozen=True)
class Content:
    """One conversation turn in wire shape: a role and its text parts."""
    role: str
    parts: tuple[str, ...]

    @classmethod
    def text(cls, role: str, text: str) -> "Content":
        """Build a single-part turn."""
        return cls(role=role, parts=(text,))

    @classmethod
    def from_message(cls, message: Message) -> "Content":
        """Convert a caller turn; 'assistant' becomes the API's 'model' role."""
        role = Role.MODEL if message.role == "assistant" else Role.USER
        return cls.text(role, message.content)

    def to_wire(self) -> dict:
        return {"role": self.role, "parts": [{"text": part} for part in self.parts]}


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every request."""
    temperature: float = 0.9
    top_p: float = 1
    top_k: int = 1
    max_output_tokens: int = 8192

    @classmethod
    def from_config(cls, config: Config) -> "GenerationConfig":
        return cls(
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            max_output_tokens=config.max_output_tokens,
        )

    def to_wire(self) -> dict:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }


@dataclass
class ChatPayload:
    """
    Full generateContent request.
    Built fresh per request and discarded once the response is sent.
    """
    contents: list[Content]
    system_instruction: str
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    safety_settings: Optional[list[dict]] = None

    def to_wire(self) -> dict:
        """Serialize to the JSON body expected by the model API."""
        body = {
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
            "contents": [content.to_wire() for content in self.contents],
            "generationConfig": self.generation_config.to_wire(),
        }
        if self.safety_settings:
            body["safetySettings"] = [dict(setting) for setting in self.safety_settings]
        return body
