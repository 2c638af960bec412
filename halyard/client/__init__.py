from halyard.client.prompt import Prompt, apply_patch_instructions, base_instructions
from halyard.client.request import (
    OpenAiReasoningEffort,
    OpenAiReasoningSummary,
    Reasoning,
    ResponsesApiRequest,
    build_request,
    build_request_from_settings,
    create_reasoning_param,
    model_supports_reasoning_summaries,
    sanitize_input,
    sanitize_item,
)
from halyard.client.stream import ResponseStream
from halyard.client.tools import ToolDefinition, create_tools_json

__all__ = [
    "OpenAiReasoningEffort",
    "OpenAiReasoningSummary",
    "Prompt",
    "Reasoning",
    "ResponseStream",
    "ResponsesApiRequest",
    "ToolDefinition",
    "apply_patch_instructions",
    "base_instructions",
    "build_request",
    "build_request_from_settings",
    "create_reasoning_param",
    "create_tools_json",
    "model_supports_reasoning_summaries",
    "sanitize_input",
    "sanitize_item",
]
