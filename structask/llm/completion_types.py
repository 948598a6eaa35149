"""Request/response contracts between the orchestration core and the transport.

Architectural role:
    Translates backend vocabulary (model names, finish-reason strings, response
    format objects) into closed enumerations so `core.engine` never depends on the
    transport's wire format.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TextIO

from structask.llm.messages import Message, ToolCall


class ModelTier(Enum):
    DEFAULT = "default"
    STANDARD = "standard"
    VISION = "vision"

    @property
    def supports_tools(self) -> bool:
        return self is not ModelTier.VISION


class ResponseFormat(Enum):
    NONE = "none"
    JSON = "json"
    TEXT = "text"


class FinishReason(Enum):
    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "FinishReason":
        if raw == "stop":
            return cls.STOP
        if raw == "tool_calls":
            return cls.TOOL_CALLS
        return cls.OTHER


@dataclass
class CompletionRequest:
    """One chat-completion call.

    Attributes:
        model: Model tier, resolved to a concrete model name by the client.
        format: Response-format constraint.
        max_tokens: Output-token ceiling; 0 means provider default.
        stream: Caller sink for incremental content, or `None` for no streaming.
        tools: Tool declarations in backend format (see `tools.binder`).
        messages: Full conversation log, in order.
    """

    model: ModelTier = ModelTier.STANDARD
    format: ResponseFormat = ResponseFormat.JSON
    max_tokens: int = 0
    stream: TextIO | None = None
    tools: list[dict[str, Any]] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)


@dataclass
class CompletionResponse:
    raw_finish_reason: str | None
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)

    @property
    def finish_reason(self) -> FinishReason:
        return FinishReason.parse(self.raw_finish_reason)


@dataclass
class AVFile:
    content_type: str  # the audio or video mime type
    content: bytes
