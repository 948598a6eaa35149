import io
import json

import pytest
import requests

from structask.core.errors import BackendError, TokenLimitError
from structask.llm import provider_config
from structask.llm.client import (
    OpenAIClient,
    backend_error,
    build_payload,
    parse_completion,
    parse_stream,
)
from structask.llm.completion_types import (
    AVFile,
    CompletionRequest,
    FinishReason,
    ModelTier,
    ResponseFormat,
)
from structask.llm.messages import user_message


class _FakeResponse:
    def __init__(self, status_code=200, body=None, lines=(), raw=None):
        self.status_code = status_code
        self._body = body if body is not None else {}
        self._raw = raw
        self._lines = list(lines)
        self.encoding = None
        self.closed = False

    @property
    def text(self):
        if self._raw is not None:
            return self._raw
        return json.dumps(self._body)

    def json(self):
        if self._raw is not None:
            return json.loads(self._raw)
        return self._body

    def iter_lines(self, decode_unicode=False):
        return iter(self._lines)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _sse(*chunks):
    return [f"data: {json.dumps(c)}" for c in chunks] + ["", "data: [DONE]"]


def _client(session):
    return OpenAIClient(api_key="sk-test", base_url="https://llm.example/v1/", session=session)


# ============================================================
# PAYLOAD
# ============================================================

def test_payload_for_json_request_with_tools():
    tools = [{"type": "function", "function": {"name": "sum"}}]
    payload = build_payload(CompletionRequest(
        model=ModelTier.STANDARD,
        format=ResponseFormat.JSON,
        tools=tools,
        messages=[user_message("hi")],
    ))

    assert payload == {
        "model": provider_config.COMPLETION_MODEL,
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": provider_config.TEMPERATURE,
        "top_p": provider_config.TOP_P,
        "tools": tools,
        "response_format": {"type": "json_object"},
    }


def test_payload_for_text_format_default_model_and_stream():
    payload = build_payload(CompletionRequest(
        model=ModelTier.DEFAULT,
        format=ResponseFormat.TEXT,
        max_tokens=100,
        stream=io.StringIO(),
    ))

    assert payload["model"] == provider_config.COMPLETION_DEFAULT_MODEL
    assert payload["response_format"] == {"type": "text"}
    assert payload["max_tokens"] == 100
    assert payload["stream"] is True
    assert "tools" not in payload


# ============================================================
# NON-STREAMING
# ============================================================

def test_parse_completion_with_tool_calls():
    response = parse_completion({"choices": [{
        "finish_reason": "tool_calls",
        "message": {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "sum", "arguments": '{"addends": [1]}'},
            }],
        },
    }]})

    assert response.finish_reason is FinishReason.TOOL_CALLS
    assert response.content == ""
    assert [(c.id, c.name, c.arguments) for c in response.tool_calls] == [
        ("call_1", "sum", '{"addends": [1]}'),
    ]


def test_parse_completion_other_finish_reason():
    response = parse_completion({"choices": [{
        "finish_reason": "content_filter", "message": {"content": "x"},
    }]})

    assert response.finish_reason is FinishReason.OTHER
    assert response.raw_finish_reason == "content_filter"


def test_complete_posts_payload_with_bearer_key():
    session = _FakeSession(_FakeResponse(body={"choices": [{
        "finish_reason": "stop", "message": {"content": "{}"},
    }]}))

    response = _client(session).complete(CompletionRequest(messages=[user_message("hi")]))

    url, kwargs = session.calls[0]
    assert url == "https://llm.example/v1/chat/completions"
    assert kwargs["headers"] == {"Authorization": "Bearer sk-test"}
    assert kwargs["json"]["messages"] == [{"role": "user", "content": "hi"}]
    assert response.content == "{}"
    assert response.finish_reason is FinishReason.STOP


def test_complete_surfaces_http_errors():
    session = _FakeSession(_FakeResponse(
        status_code=500, body={"error": {"message": "server exploded"}},
    ))

    with pytest.raises(BackendError) as excinfo:
        _client(session).complete(CompletionRequest())

    assert excinfo.value.status_code == 500
    assert "server exploded" in str(excinfo.value)
    assert not isinstance(excinfo.value, TokenLimitError)


def test_complete_with_non_json_body_is_a_backend_error():
    session = _FakeSession(_FakeResponse(raw="<html>upstream timeout</html>"))

    with pytest.raises(BackendError) as excinfo:
        _client(session).complete(CompletionRequest(messages=[user_message("hi")]))

    assert excinfo.value.status_code == 200
    assert "not JSON" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_complete_with_non_object_body_is_a_backend_error():
    session = _FakeSession(_FakeResponse(raw="[1, 2]"))

    with pytest.raises(BackendError, match="expected a JSON object"):
        _client(session).complete(CompletionRequest())


def test_complete_wraps_transport_errors():
    session = _FakeSession(error=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(BackendError) as excinfo:
        _client(session).complete(CompletionRequest())

    assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)


# ============================================================
# LIMIT ERRORS
# ============================================================

def test_context_limit_message_carries_token_count():
    error = backend_error(
        "This model's maximum context length is 128000 tokens. However, your "
        "messages resulted in 130512 tokens.",
        status_code=400,
    )

    assert isinstance(error, TokenLimitError)
    assert error.tokens == 128000
    assert str(error).startswith("total tokens = 128000; error = ")


def test_rate_limit_without_token_count():
    error = backend_error("Rate limit reached", status_code=429)

    assert isinstance(error, TokenLimitError)
    assert error.tokens is None


# ============================================================
# STREAMING
# ============================================================

def test_stream_fans_out_identical_content():
    sink = io.StringIO()
    lines = _sse(
        {"choices": [{"delta": {"role": "assistant", "content": ""}, "finish_reason": None}]},
        {"choices": [{"delta": {"content": '{"conversational'}, "finish_reason": None}]},
        {"choices": [{"delta": {"content": '_answer": "hi"}'}, "finish_reason": None}]},
        {"choices": [{"delta": {}, "finish_reason": "stop"}]},
    )

    response = parse_stream(lines, sink=sink)

    assert response.content == '{"conversational_answer": "hi"}\n'
    assert sink.getvalue() == response.content
    assert response.finish_reason is FinishReason.STOP
    assert response.tool_calls == []


def test_stream_assembles_tool_calls_by_index():
    sink = io.StringIO()
    lines = _sse(
        {"choices": [{"delta": {"tool_calls": [{
            "index": 0, "id": "a", "type": "function",
            "function": {"name": "sum", "arguments": ""},
        }]}, "finish_reason": None}]},
        {"choices": [{"delta": {"tool_calls": [{
            "index": 0, "function": {"arguments": '{"addends": '},
        }]}, "finish_reason": None}]},
        {"choices": [{"delta": {"tool_calls": [{
            "index": 0, "function": {"arguments": "[1, 2]}"},
        }]}, "finish_reason": None}]},
        {"choices": [{"delta": {"tool_calls": [{
            "index": 1, "id": "b", "type": "function",
            "function": {"name": "mult", "arguments": '{"multiplicands": [3]}'},
        }]}, "finish_reason": None}]},
        {"choices": [{"delta": {}, "finish_reason": "tool_calls"}]},
    )

    response = parse_stream(lines, sink=sink)

    assert response.finish_reason is FinishReason.TOOL_CALLS
    assert [(c.id, c.name, c.arguments) for c in response.tool_calls] == [
        ("a", "sum", '{"addends": [1, 2]}'),
        ("b", "mult", '{"multiplicands": [3]}'),
    ]
    assert sink.getvalue() == "\n"


def test_stream_error_chunk_raises():
    lines = ['data: {"error": {"message": "Request too large: 9000 tokens"}}']

    with pytest.raises(TokenLimitError) as excinfo:
        parse_stream(lines)

    assert excinfo.value.tokens == 9000


def test_stream_without_choices_raises():
    with pytest.raises(BackendError):
        parse_stream(['data: {"choices": []}'])


def test_streaming_complete_uses_stream_flag():
    sink = io.StringIO()
    fake = _FakeResponse(lines=_sse(
        {"choices": [{"delta": {"content": "{}"}, "finish_reason": "stop"}]},
    ))
    session = _FakeSession(fake)

    response = _client(session).complete(CompletionRequest(stream=sink))

    _, kwargs = session.calls[0]
    assert kwargs["stream"] is True
    assert kwargs["json"]["stream"] is True
    assert response.content == "{}\n"
    assert sink.getvalue() == "{}\n"
    assert fake.closed


# ============================================================
# TRANSCRIPTION
# ============================================================

def test_transcribe_av_uploads_named_file():
    session = _FakeSession(_FakeResponse(body={"text": "hello world"}))

    text = _client(session).transcribe_av(AVFile(content_type="audio/wav", content=b"RIFF"))

    url, kwargs = session.calls[0]
    assert text == "hello world"
    assert url == "https://llm.example/v1/audio/transcriptions"
    assert kwargs["data"]["model"] == provider_config.TRANSCRIPTION_MODEL
    filename, content, content_type = kwargs["files"]["file"]
    assert filename.endswith(".wav")
    assert content == b"RIFF"
    assert content_type == "audio/wav"


def test_transcription_without_text_field_is_a_backend_error():
    session = _FakeSession(_FakeResponse(body={"segments": []}))

    with pytest.raises(BackendError) as excinfo:
        _client(session).transcribe_av(AVFile(content_type="audio/wav", content=b"RIFF"))

    assert excinfo.value.status_code == 200
    assert "no text" in str(excinfo.value)


def test_transcription_with_non_json_body_is_a_backend_error():
    session = _FakeSession(_FakeResponse(raw="<html>gateway</html>"))

    with pytest.raises(BackendError) as excinfo:
        _client(session).transcribe_av(AVFile(content_type="audio/wav", content=b"RIFF"))

    assert "not JSON" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ValueError)
