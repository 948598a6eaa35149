"""Core orchestration for structured, schema-validated questions.

Architectural role:
    Turns one typed `Question` into a multi-turn conversation with a completion
    backend and drives it to a decoded `Answer` or a terminal error.

Control-flow model:
    1. Seed the conversation from prior messages (fresh conversations get the
       system prompts first).
    2. Check tool names, then route background files; image files switch the
       run to the vision tier.
    3. Inject the answer schema (fresh conversations only) and examples.
    4. Append the user prompt last and bind tools for the selected tier.
    5. Loop: request a completion, then
       - `tool_calls`: run each tool in order and feed results back;
       - `stop`: decode the answer envelope, re-prompting on parse failure;
       - anything else: fail.

Retry behavior:
    Only answer-parse failures consume the shared retry budget
    (`MAX_PARSE_ATTEMPTS` per run). Tool rounds never do. Backend, routing and
    tool errors are fatal and propagate immediately.

Interaction surface:
    - Transport: `client.complete`, `client.transcribe_av` (see `llm.client`).
    - Routing: `multimodal.content_router.route_files`.
    - Prompting: `prompting.prompt_builder`.
    - Tools: `tools.binder.validate_tool_names`, `tools.binder.bind_tools`.

Side effects:
    - Streams assistant content to the caller's sink when one is given.
    - Runs caller-supplied tools.
    - Never mutates `question.messages`; the updated log is returned instead (on
      errors, attached to the exception as `messages`).
"""

import json
import logging
from dataclasses import dataclass
from typing import Protocol, TextIO

from pydantic import ValidationError

from structask.core.conversation import Conversation
from structask.core.errors import (
    AnswerParseError,
    AskError,
    ToolComputeError,
    UnhandledFinishReason,
    UnknownTool,
)
from structask.core.retry import RetryBudget
from structask.core.types import Answer, Question, Response
from structask.llm import provider_config
from structask.llm.completion_types import (
    AVFile,
    CompletionRequest,
    CompletionResponse,
    FinishReason,
    ModelTier,
    ResponseFormat,
)
from structask.llm.messages import (
    Message,
    ROLE_ASSISTANT,
    ROLE_TOOL,
    user_message,
)
from structask.multimodal.content_router import route_files
from structask.multimodal.pdf_text import get_pdf_extractor
from structask.prompting.prompt_builder import (
    build_correction_message,
    build_examples_message,
    build_schema_message,
    build_system_prompts,
)
from structask.tools.binder import bind_tools, validate_tool_names


logger = logging.getLogger(__name__)

MAX_PARSE_ATTEMPTS = 4
CODE_FENCE = "```"


class CompletionClient(Protocol):
    """Backend operations consumed by `ask`; `llm.client.OpenAIClient` implements it."""

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        ...

    def transcribe_av(self, file: AVFile) -> str:
        ...


@dataclass
class RequestSettings:
    """Per-run request parameters, adjusted by file routing."""

    model: ModelTier = ModelTier.STANDARD
    format: ResponseFormat = ResponseFormat.JSON
    max_tokens: int = 0

    def enable_vision(self) -> None:
        self.model = ModelTier.VISION
        # the vision tier accepts no response-format constraint
        self.format = ResponseFormat.NONE
        self.max_tokens = provider_config.VISION_MAX_TOKENS


def strip_code_fence(content: str) -> str:
    """Trim whitespace and a surrounding markdown code fence, if present."""
    content = content.strip()
    if content.startswith(CODE_FENCE + "json"):
        content = content[len(CODE_FENCE + "json"):]
    elif content.startswith(CODE_FENCE):
        content = content[len(CODE_FENCE):]
    if content.endswith(CODE_FENCE):
        content = content[:-len(CODE_FENCE)]
    return content.strip()


def _unknown_keys(raw, decoded, path="$"):
    """Yield paths of object keys in `raw` that did not survive decoding."""
    if isinstance(raw, dict) and isinstance(decoded, dict):
        for key, value in raw.items():
            if key not in decoded:
                yield f"{path}.{key}"
            else:
                yield from _unknown_keys(value, decoded[key], f"{path}.{key}")
    elif isinstance(raw, list) and isinstance(decoded, list):
        for i, (value, kept) in enumerate(zip(raw, decoded)):
            yield from _unknown_keys(value, kept, f"{path}[{i}]")


def parse_answer(content: str, answer_type) -> Answer:
    """Strictly decode `content` as `Answer[answer_type]`.

    Types are validated in strict mode (no `"5"` -> `5` coercion), and every
    object key in the JSON, at any depth, must map to a field of the answer type.

    Raises:
        AnswerParseError: Invalid JSON, missing fields, wrong types, or unknown
            fields at any nesting level.
    """
    cleaned = strip_code_fence(content)
    try:
        answer = Answer[answer_type].model_validate_json(cleaned, strict=True)
    except ValidationError as err:
        raise AnswerParseError(err, cleaned) from err

    unknown = list(_unknown_keys(
        json.loads(cleaned), answer.model_dump(mode="json", by_alias=True)
    ))
    if unknown:
        raise AnswerParseError(f"unknown field(s): {', '.join(unknown)}", cleaned)
    return answer


def ask(
    client: CompletionClient,
    question: Question,
    stream: TextIO | None = None,
    pdf_extractor=None,
) -> Response:
    """Ask `question` and return the decoded answer plus the conversation log.

    Args:
        client: Completion/transcription backend.
        question: The question, its background files, examples, tools and prior
            conversation.
        stream: Optional sink receiving assistant content as it is generated.
        pdf_extractor: `bytes -> str` PDF renderer; defaults to the configured one.

    Returns:
        `Response` with the decoded `Answer` and the full, ordered message log.

    Raises:
        AskError: Any terminal failure; `err.messages` holds the log so far.
    """
    conversation = Conversation(question.messages)
    try:
        return _run(client, question, conversation, stream, pdf_extractor)
    except AskError as err:
        err.messages = conversation.snapshot()
        raise


def _run(client, question, conversation, stream, pdf_extractor) -> Response:
    settings = RequestSettings()
    first_question = conversation.is_fresh

    if first_question:
        conversation.extend(build_system_prompts())

    validate_tool_names(question.tools)

    if question.files:
        routed = route_files(
            question.files,
            transcriber=client,
            pdf_extractor=pdf_extractor or get_pdf_extractor(),
        )
        conversation.extend(routed.messages)
        if routed.needs_vision:
            settings.enable_vision()

    if first_question:
        conversation.append(build_schema_message(question.answer_type))

    examples = build_examples_message(
        question.examples, question.answer_type, question.prompt
    )
    if examples is not None:
        conversation.append(examples)

    conversation.append(user_message(question.prompt))

    tools = bind_tools(question.tools, settings.model)

    budget = RetryBudget(
        MAX_PARSE_ATTEMPTS,
        on_failure=lambda err: conversation.append(build_correction_message(err)),
    )
    completions = 0

    while True:
        budget.check()
        response = client.complete(CompletionRequest(
            model=settings.model,
            format=settings.format,
            max_tokens=settings.max_tokens,
            stream=stream,
            tools=tools,
            messages=conversation.snapshot(),
        ))
        completions += 1

        finish_reason = response.finish_reason
        if finish_reason is FinishReason.TOOL_CALLS:
            _dispatch_tool_calls(question.tools, response.tool_calls, conversation)
            continue

        if finish_reason is FinishReason.STOP:
            conversation.append(Message(role=ROLE_ASSISTANT, content=response.content))
            try:
                answer = parse_answer(response.content, question.answer_type)
            except AnswerParseError as err:
                budget.record(err)
                continue
            logger.info(
                "Answer decoded after %d completion call(s), %d parse failure(s)",
                completions,
                len(budget.errors),
            )
            return Response(answer=answer, messages=conversation.snapshot())

        raise UnhandledFinishReason(response.raw_finish_reason)


def _dispatch_tool_calls(tools, calls, conversation) -> None:
    """Run tool calls sequentially, in the order the backend returned them."""
    for call in calls:
        tool = tools.get(call.name)
        if tool is None:
            raise UnknownTool(call.name)

        try:
            result = tool.compute(call.arguments)
        except Exception as err:
            raise ToolComputeError(call.name, err) from err

        logger.info("Tool %s (call %s) result = %s", call.name, call.id, result)
        conversation.append(Message(role=ROLE_ASSISTANT, tool_calls=(call,)))
        conversation.append(Message(role=ROLE_TOOL, content=result, tool_call_id=call.id))
