"""Conversation message contracts shared by the core and the transport.

Architectural role:
    Defines the role-tagged turns that make up a conversation log, and their
    rendering to (and parsing from) the OpenAI chat-completions wire shape.

Serialization:
    `Message.to_dict` / `Message.from_dict` are exact inverses for every message the
    orchestration core produces, so callers can store a conversation as JSON and
    seed a follow-up question with it.
"""

from dataclasses import dataclass, field

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

PART_TEXT = "text"
PART_IMAGE_URL = "image_url"


@dataclass(frozen=True)
class ToolCall:
    """A backend-issued request to run a registered tool."""

    id: str
    name: str
    arguments: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            id=data.get("id", ""),
            name=function.get("name", ""),
            arguments=function.get("arguments", ""),
        )


@dataclass(frozen=True)
class ContentPart:
    """One part of a multi-part message: either text or an image URL."""

    type: str
    text: str | None = None
    image_url: str | None = None

    def to_dict(self) -> dict:
        if self.type == PART_IMAGE_URL:
            return {"type": PART_IMAGE_URL, "image_url": {"url": self.image_url}}
        return {"type": PART_TEXT, "text": self.text or ""}

    @classmethod
    def from_dict(cls, data: dict) -> "ContentPart":
        if data.get("type") == PART_IMAGE_URL:
            image = data.get("image_url") or {}
            return cls(type=PART_IMAGE_URL, image_url=image.get("url"))
        return cls(type=PART_TEXT, text=data.get("text", ""))


@dataclass(frozen=True)
class Message:
    role: str  # "system" | "user" | "assistant" | "tool"
    content: str | None = None
    parts: tuple[ContentPart, ...] = field(default_factory=tuple)
    tool_calls: tuple[ToolCall, ...] = field(default_factory=tuple)
    tool_call_id: str | None = None

    def to_dict(self) -> dict:
        """Render the message in chat-completions request format."""
        data: dict = {"role": self.role}
        if self.parts:
            data["content"] = [p.to_dict() for p in self.parts]
        elif self.content is not None:
            data["content"] = self.content
        if self.tool_calls:
            data["tool_calls"] = [c.to_dict() for c in self.tool_calls]
            data.setdefault("content", None)
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        content = data.get("content")
        parts: tuple[ContentPart, ...] = ()
        if isinstance(content, list):
            parts = tuple(ContentPart.from_dict(p) for p in content)
            content = None
        return cls(
            role=data["role"],
            content=content,
            parts=parts,
            tool_calls=tuple(ToolCall.from_dict(c) for c in data.get("tool_calls") or []),
            tool_call_id=data.get("tool_call_id"),
        )


def system_message(content: str) -> Message:
    return Message(role=ROLE_SYSTEM, content=content)


def user_message(content: str) -> Message:
    return Message(role=ROLE_USER, content=content)
