"""Error taxonomy for one orchestration run.

Retry policy:
    Only `AnswerParseError` is recoverable, and only within the run's shared
    parse budget. Everything else is fatal to the run and propagates to the caller.

Conversation exposure:
    Every `AskError` raised out of `core.engine.ask` carries the conversation log
    as it stood at failure time in `messages`, so callers can inspect or resume.
"""


class AskError(Exception):
    """Base class for all errors raised by a structured ask."""

    def __init__(self, message):
        super().__init__(message)
        self.messages = []


class ConfigurationError(AskError):
    """Missing or malformed credentials/configuration."""


class UnsupportedContentType(AskError):
    def __init__(self, content_type):
        super().__init__(f"unsupported content type: {content_type!r}")
        self.content_type = content_type


class NoExtensionForContentType(AskError):
    def __init__(self, content_type):
        super().__init__(f"no file extension found for content type {content_type!r}")
        self.content_type = content_type


class PdfExtractionError(AskError):
    """PDF text extraction failed.

    `returncode` is the extraction process's exit status, or None when the
    in-process extractor failed (its error text is then in `stderr`).
    """

    def __init__(self, returncode, stderr):
        detail = (stderr or "").strip() or "no stderr output"
        if returncode is None:
            super().__init__(f"pdf text extraction failed: {detail}")
        else:
            super().__init__(
                f"pdf text extraction failed with exit status {returncode}: {detail}"
            )
        self.returncode = returncode
        self.stderr = stderr


class ToolNameMismatch(AskError):
    def __init__(self, key, defined_name):
        super().__init__(
            f"tool name {key!r} does not match definition name {defined_name!r}"
        )
        self.key = key
        self.defined_name = defined_name


class UnknownTool(AskError):
    def __init__(self, name):
        super().__init__(f"unknown tool: {name!r}")
        self.name = name


class ToolComputeError(AskError):
    """A tool's `compute` raised; the original exception is chained as `__cause__`."""

    def __init__(self, name, error):
        super().__init__(f"tool {name!r} failed: {error}")
        self.name = name
        self.error = error


class UnhandledFinishReason(AskError):
    def __init__(self, finish_reason):
        super().__init__(f"unhandled finish reason: {finish_reason!r}")
        self.finish_reason = finish_reason


class AnswerParseError(AskError):
    """The model's final text did not decode as the answer envelope."""

    def __init__(self, error, content):
        super().__init__(str(error))
        self.error = error
        self.content = content


class TooManyRetries(AskError):
    def __init__(self, errors):
        errors = list(errors)
        super().__init__(f"too many tries: {[str(e) for e in errors]}")
        self.errors = errors


class BackendError(AskError):
    """Transport or remote API failure; never retried by the orchestration core."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class TokenLimitError(BackendError):
    """Rate or context-size limit reported by the backend."""

    def __init__(self, message, status_code=None, tokens=None):
        if tokens is not None:
            message = f"total tokens = {tokens}; error = {message}"
        super().__init__(message, status_code=status_code)
        self.tokens = tokens
