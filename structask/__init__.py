"""Structured, schema-validated answers from conversational completion backends.

Architectural role:
    Public entrypoint. `ask(client, Question(...))` turns a typed question, optional
    background files, examples and tools into a conversation and returns a decoded
    `Answer` plus the conversation log for follow-up questions.

Package split:
    - `core`: orchestration loop, data contracts, errors, conversation log.
    - `llm`: configuration, message model and the OpenAI-compatible transport.
    - `multimodal`: background-file routing and PDF text extraction.
    - `prompting`: system prompts, schema and example injection.
    - `tools`: tool registry binding.
"""

from structask.core.engine import MAX_PARSE_ATTEMPTS, ask
from structask.core.errors import (
    AnswerParseError,
    AskError,
    BackendError,
    ConfigurationError,
    NoExtensionForContentType,
    PdfExtractionError,
    TokenLimitError,
    ToolComputeError,
    ToolNameMismatch,
    TooManyRetries,
    UnhandledFinishReason,
    UnknownTool,
    UnsupportedContentType,
)
from structask.core.types import (
    Answer,
    Example,
    File,
    FunctionDefinition,
    Question,
    Response,
    StrictModel,
    Tool,
)
from structask.llm.client import OpenAIClient
from structask.llm.messages import Message, ToolCall
from structask.prompting.schema import schema_for

__all__ = [
    "MAX_PARSE_ATTEMPTS",
    "Answer",
    "AnswerParseError",
    "AskError",
    "BackendError",
    "ConfigurationError",
    "Example",
    "File",
    "FunctionDefinition",
    "Message",
    "NoExtensionForContentType",
    "OpenAIClient",
    "PdfExtractionError",
    "Question",
    "Response",
    "StrictModel",
    "TokenLimitError",
    "Tool",
    "ToolCall",
    "ToolComputeError",
    "ToolNameMismatch",
    "TooManyRetries",
    "UnhandledFinishReason",
    "UnknownTool",
    "UnsupportedContentType",
    "ask",
    "schema_for",
]
