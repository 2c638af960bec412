"""Conversation item shapes exchanged with the provider and the rollout log.

Every item is tagged by a ``type`` field. Unknown tags are captured by
:class:`OtherItem` instead of failing validation, so newer provider item
kinds pass through the decoder without breaking a turn. ``OtherItem`` is
never persisted and never sent back to the provider.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_validator,
)


class InputText(BaseModel):
    type: Literal["input_text"] = "input_text"
    text: str


class InputImage(BaseModel):
    type: Literal["input_image"] = "input_image"
    image_url: str


class OutputText(BaseModel):
    type: Literal["output_text"] = "output_text"
    text: str


ContentItem = Annotated[
    Union[InputText, InputImage, OutputText],
    Field(discriminator="type"),
]


class SummaryText(BaseModel):
    type: Literal["summary_text"] = "summary_text"
    text: str


# Only one summary kind exists today.
ReasoningSummary = SummaryText


class LocalShellStatus(StrEnum):
    completed = "completed"
    in_progress = "in_progress"
    incomplete = "incomplete"


class LocalShellExecAction(BaseModel):
    type: Literal["exec"] = "exec"
    command: list[str]
    timeout_ms: int | None = None
    working_directory: str | None = None
    env: dict[str, str] | None = None
    user: str | None = None


class FunctionCallOutputPayload(BaseModel):
    """Result of a function call as tracked internally.

    Always encoded as a three-field object. The provider expects a bare
    string instead; that projection happens only when a request is built
    (see ``halyard.client.request.sanitize_item``).
    """

    content: str
    success: bool | None = None
    is_user_feedback: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"content": value}
        return value

    def __str__(self) -> str:
        return self.content


class MessageItem(BaseModel):
    type: Literal["message"] = "message"
    role: str
    content: list[ContentItem] = Field(default_factory=list)


class ReasoningItem(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    id: str
    summary: list[ReasoningSummary] = Field(default_factory=list)


class LocalShellCallItem(BaseModel):
    type: Literal["local_shell_call"] = "local_shell_call"
    # Chat Completions populates ``id``; the Responses API populates ``call_id``.
    id: str | None = None
    call_id: str | None = None
    status: LocalShellStatus
    action: LocalShellExecAction


class FunctionCallItem(BaseModel):
    type: Literal["function_call"] = "function_call"
    name: str
    # JSON text as sent by the provider; parsed by whoever handles the call.
    arguments: str
    call_id: str


class FunctionCallOutputItem(BaseModel):
    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: FunctionCallOutputPayload


class OtherItem(BaseModel):
    """Any item whose ``type`` tag is not recognized."""

    model_config = ConfigDict(extra="allow")

    type: str = "other"


_KNOWN_ITEM_TAGS = frozenset(
    {
        "message",
        "reasoning",
        "local_shell_call",
        "function_call",
        "function_call_output",
    }
)


def _item_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if isinstance(value, OtherItem) or tag not in _KNOWN_ITEM_TAGS:
        return "other"
    return tag


ConversationItem = Annotated[
    Union[
        Annotated[MessageItem, Tag("message")],
        Annotated[ReasoningItem, Tag("reasoning")],
        Annotated[LocalShellCallItem, Tag("local_shell_call")],
        Annotated[FunctionCallItem, Tag("function_call")],
        Annotated[FunctionCallOutputItem, Tag("function_call_output")],
        Annotated[OtherItem, Tag("other")],
    ],
    Discriminator(_item_tag),
]

_ITEM_ADAPTER: TypeAdapter[ConversationItem] = TypeAdapter(ConversationItem)
_ITEM_LIST_ADAPTER: TypeAdapter[list[ConversationItem]] = TypeAdapter(list[ConversationItem])


def parse_item(data: Any) -> ConversationItem:
    """Validate a decoded JSON object into a conversation item."""
    return _ITEM_ADAPTER.validate_python(data)


def parse_item_json(raw: str | bytes) -> ConversationItem:
    return _ITEM_ADAPTER.validate_json(raw)


def parse_items(data: Any) -> list[ConversationItem]:
    return _ITEM_LIST_ADAPTER.validate_python(data)


def dump_item(item: ConversationItem) -> dict[str, Any]:
    """Lossless internal encoding of ``item`` as a JSON-compatible dict."""
    return item.model_dump(mode="json")


def dump_item_json(item: ConversationItem) -> str:
    return item.model_dump_json()


def is_user_feedback(item: ConversationItem) -> bool:
    if isinstance(item, FunctionCallOutputItem):
        return item.output.is_user_feedback
    return False


__all__ = [
    "ContentItem",
    "ConversationItem",
    "FunctionCallItem",
    "FunctionCallOutputItem",
    "FunctionCallOutputPayload",
    "InputImage",
    "InputText",
    "LocalShellCallItem",
    "LocalShellExecAction",
    "LocalShellStatus",
    "MessageItem",
    "OtherItem",
    "OutputText",
    "ReasoningItem",
    "ReasoningSummary",
    "SummaryText",
    "dump_item",
    "dump_item_json",
    "is_user_feedback",
    "parse_item",
    "parse_item_json",
    "parse_items",
]
