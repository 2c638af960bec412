"""Conversions from raw user input and foreign tool results into items."""

from __future__ import annotations

import base64
import json
import logging
import mimetypes
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticSerializationError

from halyard.models.items import (
    ContentItem,
    FunctionCallOutputItem,
    FunctionCallOutputPayload,
    InputImage,
    InputText,
    MessageItem,
)

logger = logging.getLogger(__name__)

_FALLBACK_MIME = "application/octet-stream"


class TextInput(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageInput(BaseModel):
    type: Literal["image"] = "image"
    image_url: str


class LocalImageInput(BaseModel):
    type: Literal["local_image"] = "local_image"
    path: Path


UserInput = Annotated[
    Union[TextInput, ImageInput, LocalImageInput],
    Field(discriminator="type"),
]


def _local_image_content(path: Path) -> InputImage | None:
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.warning("Skipping image %s: could not read file: %s", path, exc)
        return None

    mime, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(data).decode("ascii")
    return InputImage(image_url=f"data:{mime or _FALLBACK_MIME};base64,{encoded}")


def user_message_from_inputs(inputs: Iterable[UserInput]) -> MessageItem:
    """Build a ``user`` message from input fragments.

    Local images are embedded as base64 data URLs. An image that cannot be
    read is skipped; the rest of the message is kept.
    """
    content: list[ContentItem] = []
    for fragment in inputs:
        if isinstance(fragment, TextInput):
            content.append(InputText(text=fragment.text))
        elif isinstance(fragment, ImageInput):
            content.append(InputImage(image_url=fragment.image_url))
        else:
            image = _local_image_content(fragment.path)
            if image is not None:
                content.append(image)
    return MessageItem(role="user", content=content)


class CallToolResult(BaseModel):
    """Successful result of an external (MCP) tool call."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[dict[str, Any]] = Field(default_factory=list)
    is_error: bool | None = Field(default=None, alias="isError")


class ToolCallOutput(BaseModel):
    """Outcome of an external tool call: either ``result`` or ``error``."""

    call_id: str
    result: CallToolResult | None = None
    error: str | None = None

    def to_conversation_item(self) -> FunctionCallOutputItem:
        if self.error is not None or self.result is None:
            content = f"err: {self.error!r}"
            success = False
        else:
            success = True
            try:
                content = json.dumps(
                    self.result.model_dump(mode="json", by_alias=True, exclude_none=True)
                )
            except (PydanticSerializationError, TypeError, ValueError) as exc:
                content = f"JSON serialization error: {exc}"
        return FunctionCallOutputItem(
            call_id=self.call_id,
            output=FunctionCallOutputPayload(content=content, success=success),
        )


class ShellToolCallParams(BaseModel):
    """Arguments of a ``shell`` / ``container.exec`` function call."""

    model_config = ConfigDict(populate_by_name=True)

    command: list[str]
    workdir: str | None = None
    # The wire name is ``timeout``; the unit is milliseconds.
    timeout_ms: int | None = Field(default=None, alias="timeout")


__all__ = [
    "CallToolResult",
    "ImageInput",
    "LocalImageInput",
    "ShellToolCallParams",
    "TextInput",
    "ToolCallOutput",
    "UserInput",
    "user_message_from_inputs",
]
