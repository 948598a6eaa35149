"""Audio/video transcription helpers.

The transcription endpoint infers the media format from the uploaded file name, so
each upload carries a synthetic `uuid4` name whose extension is one the endpoint
accepts for the declared MIME type.

Side effects:
    Registers the endpoint's media extensions with `mimetypes` at import time.
"""

import mimetypes
import uuid

from structask.core.errors import NoExtensionForContentType

VALID_EXTENSIONS = (".m4a", ".mp3", ".webm", ".mp4", ".mpga", ".wav", ".mpeg")

# (content type, extension) pairs; later pairs win for `guess_type` lookups.
_MEDIA_TYPES = (
    ("audio/mp4", ".m4a"),
    ("audio/mp3", ".mp3"),
    ("video/webm", ".webm"),
    ("audio/webm", ".webm"),
    ("video/mp4", ".mp4"),
    ("audio/mpeg", ".mpga"),
    ("audio/x-wav", ".wav"),
    ("audio/wav", ".wav"),
    ("video/mpeg", ".mpeg"),
)

for _content_type, _ext in _MEDIA_TYPES:
    mimetypes.add_type(_content_type, _ext)


def extension_for(content_type: str) -> str:
    """Return the first accepted extension registered for `content_type`.

    Raises:
        NoExtensionForContentType: No registered extension is in `VALID_EXTENSIONS`.
    """
    for ext in mimetypes.guess_all_extensions(content_type):
        if ext in VALID_EXTENSIONS:
            return ext
    raise NoExtensionForContentType(content_type)


def synthetic_filename(content_type: str) -> str:
    """Build an upload name; only its extension is meaningful to the endpoint."""
    return uuid.uuid4().hex + extension_for(content_type)
