"""JSON-schema reflection over answer and tool-parameter types."""

import json
from typing import Any

from pydantic import TypeAdapter


def schema_for(type_: Any) -> dict[str, Any]:
    """Return the JSON schema document for any pydantic-supported type.

    Works for pydantic models (including parametrized generics such as
    `Answer[MyAnswer]`), dataclasses, TypedDicts and plain annotations.
    """
    return TypeAdapter(type_).json_schema()


def render_schema(type_: Any) -> str:
    return json.dumps(schema_for(type_), indent=2)
