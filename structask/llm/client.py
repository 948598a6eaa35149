"""OpenAI-compatible transport client for completion and transcription requests.

Architectural role:
    Executes HTTP requests against the configured chat-completions endpoint and
    normalizes streaming and non-streaming responses into `CompletionResponse`.

Model invocation flow:
    `core.engine.ask` -> `OpenAIClient.complete(request)` -> `build_payload` ->
    `requests` POST -> parsed finish reason, content and tool calls.

Streaming:
    Server-sent `data:` lines are parsed incrementally. Content deltas go through a
    `ContentAccumulator`, so the caller sink and the stored content receive the same
    text. Tool-call deltas are assembled per call index and are not echoed.

Retry behavior:
    No retry loop is implemented. Transport failures raise `BackendError` (or
    `TokenLimitError` for rate/size limits) and are left to the caller.
"""

import json
import logging
import re

import requests

from structask.core.errors import BackendError, TokenLimitError
from structask.llm import provider_config
from structask.llm.completion_types import (
    AVFile,
    CompletionRequest,
    CompletionResponse,
    ModelTier,
    ResponseFormat,
)
from structask.llm.messages import ToolCall
from structask.llm.streaming import ContentAccumulator
from structask.llm.transcription import synthetic_filename

logger = logging.getLogger(__name__)

_TOKENS_PATTERN = re.compile(r"(\d+) tokens")


def resolve_model(tier: ModelTier) -> str:
    if tier is ModelTier.DEFAULT:
        return provider_config.COMPLETION_DEFAULT_MODEL
    if tier is ModelTier.STANDARD:
        return provider_config.COMPLETION_MODEL
    if tier is ModelTier.VISION:
        return provider_config.VISION_MODEL
    raise ValueError(f"unknown model: {tier!r}")


def build_payload(request: CompletionRequest) -> dict:
    """Build the chat-completions JSON payload for one request.

    Parameter handling:
        - `max_tokens` is forwarded only when non-zero.
        - `tools` is forwarded only when non-empty.
        - `response_format` is omitted for `ResponseFormat.NONE`.
        - `stream` is set when the request carries a sink.
    """
    payload = {
        "model": resolve_model(request.model),
        "messages": [m.to_dict() for m in request.messages],
        "temperature": provider_config.TEMPERATURE,
        "top_p": provider_config.TOP_P,
    }
    if request.max_tokens:
        payload["max_tokens"] = request.max_tokens
    if request.tools:
        payload["tools"] = request.tools

    if request.format is ResponseFormat.JSON:
        payload["response_format"] = {"type": "json_object"}
    elif request.format is ResponseFormat.TEXT:
        payload["response_format"] = {"type": "text"}
    elif request.format is not ResponseFormat.NONE:
        raise ValueError(f"unknown format: {request.format!r}")

    if request.stream is not None:
        payload["stream"] = True
    return payload


def _error_message(response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.text or f"HTTP {response.status_code}"


def backend_error(message: str, status_code=None) -> BackendError:
    """Classify an API failure, extracting a token count from limit messages."""
    match = _TOKENS_PATTERN.search(message or "")
    if status_code == 429 or match:
        tokens = int(match.group(1)) if match else None
        return TokenLimitError(message, status_code=status_code, tokens=tokens)
    return BackendError(message, status_code=status_code)


def _raise_for_status(response) -> None:
    if response.status_code >= 400:
        raise backend_error(_error_message(response), response.status_code)


def _json_body(response) -> dict:
    """Decode a successful response's JSON object body."""
    try:
        data = response.json()
    except ValueError as err:
        raise BackendError(
            f"response body is not JSON: {err}", status_code=response.status_code
        ) from err
    if not isinstance(data, dict):
        raise BackendError(
            f"expected a JSON object, got {type(data).__name__}",
            status_code=response.status_code,
        )
    return data


class _PartialToolCall:
    """Tool call assembled from streamed deltas."""

    def __init__(self):
        self.id = ""
        self.name = ""
        self.arguments = ""

    def freeze(self) -> ToolCall:
        return ToolCall(id=self.id, name=self.name, arguments=self.arguments)


def parse_stream(lines, sink=None) -> CompletionResponse:
    """Consume server-sent event lines from a streaming completion.

    Args:
        lines: Iterable of decoded lines (`data: {...}` / `data: [DONE]`).
        sink: Optional caller sink receiving content deltas as they arrive.

    Returns:
        `CompletionResponse` with content terminated by a newline.

    Raises:
        BackendError: A chunk carries an `error` object or no choices.
    """
    accumulator = ContentAccumulator(sink)
    calls: list[_PartialToolCall] = []
    finish_reason = None

    for line in lines:
        if not line:
            continue
        if line.startswith("data: "):
            line = line[6:]
        if line.strip() == "[DONE]":
            break

        try:
            chunk = json.loads(line)
        except ValueError:
            logger.debug("Skipping non-JSON stream line: %r", line)
            continue
        if not isinstance(chunk, dict):
            raise BackendError(f"unexpected stream chunk: {line!r}")
        if "error" in chunk:
            error = chunk["error"] or {}
            raise backend_error(error.get("message", str(error)))

        choices = chunk.get("choices") or []
        if not choices:
            raise BackendError("no choices")
        choice = choices[0]
        if choice.get("finish_reason"):
            finish_reason = choice["finish_reason"]

        delta = choice.get("delta") or {}
        if delta.get("content"):
            accumulator.write(delta["content"])

        for call_delta in delta.get("tool_calls") or []:
            index = call_delta.get("index", len(calls))
            while index >= len(calls):
                calls.append(_PartialToolCall())
            call = calls[index]
            if call_delta.get("id"):
                call.id = call_delta["id"]
            function = call_delta.get("function") or {}
            if function.get("name"):
                call.name = function["name"]
                logger.debug("Streaming tool call %s", call.name)
            call.arguments += function.get("arguments") or ""

    return CompletionResponse(
        raw_finish_reason=finish_reason,
        content=accumulator.finish(),
        tool_calls=[c.freeze() for c in calls],
    )


def parse_completion(data: dict) -> CompletionResponse:
    """Extract finish reason, content and tool calls from a non-streamed response."""
    choices = data.get("choices") or []
    if not choices:
        raise BackendError("no choices")
    choice = choices[0]
    message = choice.get("message") or {}
    return CompletionResponse(
        raw_finish_reason=choice.get("finish_reason"),
        content=message.get("content") or "",
        tool_calls=[ToolCall.from_dict(c) for c in message.get("tool_calls") or []],
    )


class OpenAIClient:
    """HTTP client for an OpenAI-compatible API.

    Implements the two operations the orchestration core consumes:
    `complete(CompletionRequest)` and `transcribe_av(AVFile)`.
    """

    def __init__(self, api_key=None, base_url=None, session=None, timeout=None):
        self.api_key = api_key or provider_config.load_key()
        self.base_url = (base_url or provider_config.OPENAI_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or provider_config.REQUEST_TIMEOUT

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _post(self, path, **kwargs):
        try:
            return self.session.post(
                f"{self.base_url}{path}",
                headers=self._headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as err:
            raise BackendError(f"request to {path} failed: {err}") from err

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        payload = build_payload(request)
        logger.debug(
            "Completion request: model=%s messages=%d tools=%d stream=%s",
            payload["model"],
            len(payload["messages"]),
            len(request.tools),
            request.stream is not None,
        )

        if request.stream is None:
            response = self._post("/chat/completions", json=payload)
            _raise_for_status(response)
            return parse_completion(_json_body(response))

        response = self._post("/chat/completions", json=payload, stream=True)
        with response:
            _raise_for_status(response)
            response.encoding = "utf-8"
            try:
                return parse_stream(
                    response.iter_lines(decode_unicode=True),
                    sink=request.stream,
                )
            except requests.exceptions.RequestException as err:
                raise BackendError(f"stream interrupted: {err}") from err

    def transcribe_av(self, file: AVFile, prompt: str = "") -> str:
        """Transcribe the audio track of an audio or video file.

        Raises:
            NoExtensionForContentType: The MIME type has no accepted extension.
            BackendError: The transcription request failed.
        """
        filename = synthetic_filename(file.content_type)
        data = {
            "model": provider_config.TRANSCRIPTION_MODEL,
            "temperature": "1",
        }
        if prompt:
            data["prompt"] = prompt
        response = self._post(
            "/audio/transcriptions",
            data=data,
            files={"file": (filename, file.content, file.content_type)},
        )
        _raise_for_status(response)
        text = _json_body(response).get("text")
        if not isinstance(text, str):
            raise BackendError(
                "transcription response has no text", status_code=response.status_code
            )
        return text
