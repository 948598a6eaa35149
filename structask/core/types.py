"""Data contracts for one structured question and its outcome.

Architectural role:
    Defines the caller-facing inputs (`Question`, `File`, `Example`, `Tool`) and
    outputs (`Answer`, `Response`) of `core.engine.ask`.

Answer typing:
    `Answer` is a pydantic generic model; `Answer[T]` both renders the JSON schema
    injected into the conversation and strictly decodes the model's final text.
    Unknown top-level fields are rejected. Answer types that should also reject
    unknown nested fields can subclass `StrictModel`.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

from structask.llm.messages import Message

AnswerT = TypeVar("AnswerT")


class StrictModel(BaseModel):
    """Base for answer and tool-parameter models that forbid unknown fields."""

    model_config = ConfigDict(extra="forbid")


class Answer(StrictModel, Generic[AnswerT]):
    """The envelope every final model response must conform to.

    Attributes:
        conversational_answer: Free-form, high-level answer to the question.
        formal_answer: Formal answer to the question, in the caller's schema.
    """

    conversational_answer: str
    formal_answer: AnswerT

    def __str__(self) -> str:
        return self.model_dump_json(indent=2)


@dataclass(frozen=True)
class File:
    """Background material for a question."""

    name: str
    content: bytes
    content_type: str


@dataclass(frozen=True)
class Example(Generic[AnswerT]):
    """What an answer may look like for a given prompt."""

    prompt: str
    answer: AnswerT


@dataclass(frozen=True)
class FunctionDefinition:
    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


class Tool(Protocol):
    """A caller-supplied computation the model may invoke mid-conversation.

    `compute` receives the raw JSON arguments issued by the model and returns the
    result text fed back to it. Failures are raised, not returned.
    """

    def definition(self) -> FunctionDefinition:
        ...

    def compute(self, arguments: str) -> str:
        ...


@dataclass
class Question(Generic[AnswerT]):
    """A question to ask the assistant.

    Attributes:
        prompt: The question to ask, including any instructions.
        answer_type: Type of `Answer.formal_answer`; field names should be
            self-explanatory to the model.
        files: Background material, routed on every turn it is supplied.
        examples: `Example`s (or bare answers) of what the answer may look like.
        tools: Tools at the assistant's disposal, keyed by definition name.
        messages: Prior conversation; empty for a fresh conversation.
    """

    prompt: str
    answer_type: type[AnswerT]
    files: list[File] = field(default_factory=list)
    examples: list[Any] = field(default_factory=list)
    tools: dict[str, Tool] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)


@dataclass
class Response(Generic[AnswerT]):
    answer: Answer[AnswerT]
    messages: list[Message]
