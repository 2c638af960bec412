"""Tool definitions advertised to the model on every turn."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from halyard.client.prompt import Prompt


class ToolDefinition(BaseModel):
    """A tool sourced from an external server, keyed by its qualified name."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


SHELL_TOOL: dict[str, Any] = {
    "type": "function",
    "name": "shell",
    "description": "Runs a shell command, and returns its output.",
    "strict": False,
    "parameters": {
        "type": "object",
        "properties": {
            "command": {"type": "array", "items": {"type": "string"}},
            "workdir": {"type": "string"},
            "timeout": {"type": "number"},
        },
        "required": ["command"],
        "additionalProperties": False,
    },
}

LOCAL_SHELL_TOOL: dict[str, Any] = {"type": "local_shell"}


def uses_local_shell_tool(model: str) -> bool:
    return model.startswith("codex-mini")


def tool_to_responses_json(qualified_name: str, tool: ToolDefinition) -> dict[str, Any]:
    # The model must call the tool by its qualified name, not ``tool.name``.
    return {
        "type": "function",
        "name": qualified_name,
        "description": tool.description or "",
        "strict": False,
        "parameters": tool.input_schema,
    }


def create_tools_json(prompt: Prompt, model: str) -> list[dict[str, Any]]:
    tools = [LOCAL_SHELL_TOOL if uses_local_shell_tool(model) else SHELL_TOOL]
    tools.extend(
        tool_to_responses_json(name, tool) for name, tool in prompt.extra_tools.items()
    )
    return tools


__all__ = [
    "LOCAL_SHELL_TOOL",
    "SHELL_TOOL",
    "ToolDefinition",
    "create_tools_json",
    "tool_to_responses_json",
    "uses_local_shell_tool",
]
