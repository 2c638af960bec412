from __future__ import annotations

from functools import cache
from importlib.resources import files

from pydantic import BaseModel, Field

from halyard.client.tools import ToolDefinition
from halyard.models.items import ConversationItem

# Models in this family need the apply_patch usage notes appended.
_APPLY_PATCH_MODEL_PREFIX = "gpt-4.1"


@cache
def base_instructions() -> str:
    """Built-in agent instructions every request starts with."""
    return files("halyard.client").joinpath("prompt.md").read_text(encoding="utf-8")


@cache
def apply_patch_instructions() -> str:
    return (
        files("halyard.client")
        .joinpath("apply_patch_instructions.md")
        .read_text(encoding="utf-8")
    )


class Prompt(BaseModel):
    """Materials for a single model turn."""

    input: list[ConversationItem] = Field(default_factory=list)
    user_instructions: str | None = None
    store: bool = False
    # Keys are fully-qualified tool names (server-prefixed).
    extra_tools: dict[str, ToolDefinition] = Field(default_factory=dict)
    base_instructions_override: str | None = None

    def get_full_instructions(self, model: str) -> str:
        sections = [
            self.base_instructions_override
            if self.base_instructions_override is not None
            else base_instructions()
        ]
        if self.user_instructions is not None:
            sections.append(self.user_instructions)
        if model.startswith(_APPLY_PATCH_MODEL_PREFIX):
            sections.append(apply_patch_instructions())
        return "\n".join(sections)


__all__ = ["Prompt", "apply_patch_instructions", "base_instructions"]
