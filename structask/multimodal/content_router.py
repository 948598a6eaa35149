"""Background-material routing for structured questions.

Architectural role:
- Convert each supplied file into the conversation message(s) representing it.
- Delegate heavy lifting: transcription to the completion client, PDF rendering
  to a text extractor.

Routing table (exact content-type match):
1. Audio/video types -> transcription, wrapped in a system message.
2. `application/pdf` -> extracted text, wrapped in a system message.
3. Text-like types -> raw content embedded verbatim.
4. Image types -> multi-part message with an inline data URL; flags the run as
   needing the vision tier.
5. Anything else -> `UnsupportedContentType`.

Error handling strategy:
- Failures are not captured; the first failing file aborts the whole run.

Side effects:
- None beyond the delegated transcription/extraction calls.
"""

import base64
from dataclasses import dataclass, field
from typing import Callable, Protocol

from structask.core.errors import UnsupportedContentType
from structask.core.types import File
from structask.llm.completion_types import AVFile
from structask.llm.messages import (
    PART_IMAGE_URL,
    PART_TEXT,
    ContentPart,
    Message,
    ROLE_SYSTEM,
    system_message,
)


# ============================================================
# CONFIG
# ============================================================

AUDIO_VIDEO_TYPES = frozenset({
    "audio/mp3", "audio/mp4", "audio/mpeg", "audio/wav", "audio/x-wav",
    "audio/webm", "video/mp4", "video/mpeg", "video/webm",
})

PDF_TYPES = frozenset({"application/pdf"})

TEXT_TYPES = frozenset({
    "application/json",
    "text/plain", "text/html", "text/markdown", "text/csv", "text/xml", "text/rtf",
    "text/tab-separated-values", "text/richtext",
    "text/yaml", "text/x-yaml", "text/x-markdown", "text/x-rst", "text/x-org",
})

IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/gif"})


class Transcriber(Protocol):
    """Anything that can transcribe audio/video; `OpenAIClient` qualifies."""

    def transcribe_av(self, file: AVFile) -> str:
        ...


@dataclass
class RoutedFiles:
    messages: list[Message] = field(default_factory=list)
    needs_vision: bool = False


# ============================================================
# PUBLIC ENTRYPOINTS
# ============================================================

def route_files(
    files: list[File],
    transcriber: Transcriber,
    pdf_extractor: Callable[[bytes], str],
) -> RoutedFiles:
    """Route every file in order, preceded by a single file-count message.

    Returns an empty result when `files` is empty.
    """
    routed = RoutedFiles()
    if not files:
        return routed

    routed.messages.append(system_message(
        f"there are going to be {len(files)} files in the following request, "
        "each of which you will use as background material for assisting the user."
    ))
    for f in files:
        messages, needs_vision = route_file(f, transcriber, pdf_extractor)
        routed.messages.extend(messages)
        routed.needs_vision = routed.needs_vision or needs_vision
    return routed


def route_file(
    file: File,
    transcriber: Transcriber,
    pdf_extractor: Callable[[bytes], str],
) -> tuple[list[Message], bool]:
    """Dispatch one file by content type.

    Returns:
        `(messages, needs_vision)`.

    Raises:
        UnsupportedContentType: The content type is not in the routing table.
    """
    content_type = file.content_type

    if content_type in AUDIO_VIDEO_TYPES:
        text = transcriber.transcribe_av(
            AVFile(content_type=content_type, content=file.content)
        )
        return [system_message(
            f'here is the transcription of a {content_type} file named "{file.name}":\n\n{text}'
        )], False

    if content_type in PDF_TYPES:
        text = pdf_extractor(file.content)
        return [system_message(
            f'here is the text rendering of an {content_type} file named "{file.name}":\n\n{text}'
        )], False

    if content_type in TEXT_TYPES:
        text = file.content.decode("utf-8", errors="replace")
        return [system_message(
            f'here is a {content_type} file named "{file.name}":\n\n{text}'
        )], False

    if content_type in IMAGE_TYPES:
        return [_image_message(file)], True

    raise UnsupportedContentType(content_type)


# ============================================================
# IMAGES
# ============================================================

def to_data_url(content: bytes, content_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def _image_message(file: File) -> Message:
    return Message(
        role=ROLE_SYSTEM,
        parts=(
            ContentPart(
                type=PART_TEXT,
                text=f'here is an {file.content_type} file named "{file.name}"',
            ),
            ContentPart(
                type=PART_IMAGE_URL,
                image_url=to_data_url(file.content, file.content_type),
            ),
        ),
    )
