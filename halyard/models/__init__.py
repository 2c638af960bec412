from __future__ import annotations

from halyard.models.events import (
    Completed,
    Created,
    OutputItemDone,
    OutputTextDelta,
    ReasoningSummaryDelta,
    ResponseEvent,
    TokenUsage,
)
from halyard.models.inputs import (
    CallToolResult,
    ImageInput,
    LocalImageInput,
    ShellToolCallParams,
    TextInput,
    ToolCallOutput,
    UserInput,
    user_message_from_inputs,
)
from halyard.models.items import (
    ContentItem,
    ConversationItem,
    FunctionCallItem,
    FunctionCallOutputItem,
    FunctionCallOutputPayload,
    InputImage,
    InputText,
    LocalShellCallItem,
    LocalShellExecAction,
    LocalShellStatus,
    MessageItem,
    OtherItem,
    OutputText,
    ReasoningItem,
    ReasoningSummary,
    SummaryText,
    dump_item,
    dump_item_json,
    is_user_feedback,
    parse_item,
    parse_item_json,
    parse_items,
)
from halyard.models.session import GitInfo, SessionMeta, format_session_timestamp, utc_now

__all__ = [
    "CallToolResult",
    "Completed",
    "ContentItem",
    "ConversationItem",
    "Created",
    "FunctionCallItem",
    "FunctionCallOutputItem",
    "FunctionCallOutputPayload",
    "GitInfo",
    "ImageInput",
    "InputImage",
    "InputText",
    "LocalImageInput",
    "LocalShellCallItem",
    "LocalShellExecAction",
    "LocalShellStatus",
    "MessageItem",
    "OtherItem",
    "OutputItemDone",
    "OutputText",
    "OutputTextDelta",
    "ReasoningItem",
    "ReasoningSummary",
    "ReasoningSummaryDelta",
    "ResponseEvent",
    "SessionMeta",
    "ShellToolCallParams",
    "SummaryText",
    "TextInput",
    "TokenUsage",
    "ToolCallOutput",
    "UserInput",
    "dump_item",
    "dump_item_json",
    "format_session_timestamp",
    "is_user_feedback",
    "parse_item",
    "parse_item_json",
    "parse_items",
    "user_message_from_inputs",
    "utc_now",
]
