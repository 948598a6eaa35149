"""Tool registry binding.

Converts the caller's `{name: Tool}` map into chat-completions tool declarations:

    {
      "type": "function",
      "function": {"name": "...", "description": "...", "parameters": {...}}
    }

Declarations are sorted by name so identical tool sets always produce identical
requests. The vision tier has no tool support; binding for it yields no tools.
`validate_tool_names` runs the key check on its own, so a run can reject a
misconfigured map before it does any other work.
"""

import logging
from typing import Any

from structask.core.errors import ToolNameMismatch
from structask.core.types import Tool
from structask.llm.completion_types import ModelTier

logger = logging.getLogger(__name__)


def validate_tool_names(tools: dict[str, Tool]) -> None:
    """Check every registry key against its tool's definition name.

    Raises:
        ToolNameMismatch: A registry key differs from its tool's definition name.
    """
    for name, tool in tools.items():
        defined_name = tool.definition().name
        if name != defined_name:
            raise ToolNameMismatch(name, defined_name)


def bind_tools(tools: dict[str, Tool], model_tier: ModelTier) -> list[dict[str, Any]]:
    """Validate and declare tools for `model_tier`.

    Raises:
        ToolNameMismatch: A registry key differs from its tool's definition name.
    """
    if not model_tier.supports_tools:
        if tools:
            logger.info("Model tier %s has no tool support; %d tool(s) unavailable",
                        model_tier.value, len(tools))
        return []

    validate_tool_names(tools)

    declarations = []
    for tool in tools.values():
        definition = tool.definition()
        declarations.append({
            "type": "function",
            "function": {
                "name": definition.name,
                "description": definition.description,
                "parameters": definition.parameters,
            },
        })

    declarations.sort(key=lambda d: d["function"]["name"])
    return declarations
