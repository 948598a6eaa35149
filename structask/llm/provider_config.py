"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model selection, request defaults, and credential lookup for
    `structask.llm.client` and the orchestration engine.

Model call flow integration:
    - `client.build_payload` consumes the model names, `TEMPERATURE` and `TOP_P`.
    - `client.OpenAIClient` consumes `OPENAI_BASE_URL`, `REQUEST_TIMEOUT`,
      `TRANSCRIPTION_MODEL` and `load_key`.
    - `core.engine` consumes `VISION_MAX_TOKENS` when image files switch a run to
      the vision tier.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing or malformed key material raises `ConfigurationError`.
"""

import os
from dotenv import load_dotenv

from structask.core.errors import ConfigurationError

load_dotenv()

# OpenAI-compatible endpoint root; `/chat/completions` and `/audio/transcriptions`
# are appended by the client.
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")

# Model routing controls, one per model tier.
COMPLETION_DEFAULT_MODEL = os.getenv("STRUCTASK_DEFAULT_MODEL", "gpt-4-turbo")
COMPLETION_MODEL = os.getenv("STRUCTASK_MODEL", "gpt-4-turbo-2024-04-09")
VISION_MODEL = os.getenv("STRUCTASK_VISION_MODEL", "gpt-4-turbo-2024-04-09")
TRANSCRIPTION_MODEL = os.getenv("STRUCTASK_TRANSCRIPTION_MODEL", "whisper-1")

# Shared generation defaults.
TEMPERATURE = float(os.getenv("STRUCTASK_TEMPERATURE", "1.0"))
TOP_P = float(os.getenv("STRUCTASK_TOP_P", "1.0"))
REQUEST_TIMEOUT = float(os.getenv("STRUCTASK_REQUEST_TIMEOUT", "120"))

# The vision tier defaults to very few output tokens unless told otherwise.
VISION_MAX_TOKENS = int(os.getenv("STRUCTASK_VISION_MAX_TOKENS", "4096"))

# "pdfplumber" (in-process) or "pdftotext" (poppler-utils subprocess).
PDF_EXTRACTOR = os.getenv("STRUCTASK_PDF_EXTRACTOR", "pdfplumber")

DEFAULT_KEY_FILE = "config/openai.key"
LEGACY_KEY_FILE = "openai.txt"
KEY_PREFIX = "sk-"


def load_key(path=DEFAULT_KEY_FILE):
    """Load the API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/openai.key` -> `OPENAI_API_KEY`).
        2. Legacy lowercase `openai` environment variable.
        3. Raw file contents at `path`.
        4. Raw file contents of `openai.txt` in the working directory.

    Args:
        path: Configured key file path.

    Returns:
        Stripped key string.

    Raises:
        ConfigurationError: No key was found, or the key lacks the `sk-` prefix.
    """
    candidates = []
    if path:
        key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
        candidates.append(os.getenv(key_name))
    candidates.append(os.getenv("openai"))

    key = next((c.strip() for c in candidates if c and c.strip()), None)

    if key is None:
        for file_path in (path, LEGACY_KEY_FILE):
            if file_path and os.path.exists(file_path):
                with open(file_path, "r") as f:
                    key = f.read().strip()
                break

    if not key:
        raise ConfigurationError(
            f"no API key found in environment or in {path!r} / {LEGACY_KEY_FILE!r}"
        )
    if not key.startswith(KEY_PREFIX):
        raise ConfigurationError(f"openai key should start with {KEY_PREFIX!r} prefix")
    return key
