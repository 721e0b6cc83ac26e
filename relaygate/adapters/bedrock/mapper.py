"""OpenAI chat completion <-> Bedrock Converse mapping.

Request direction::

    {"model": "nova-micro", "messages": [{"role": "user", "content": "Hello"}], "max_tokens": 1024}
    -> {"messages": [{"role": "user", "content": [{"text": "Hello"}]}], "inferenceConfig": {"maxTokens": 1024}}

Converse only knows ``user`` and ``assistant``; ``system`` messages are sent as
``user`` turns, so a round trip does not preserve the system role.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from relaygate.core.models import ChatRequest, ConverseResponse


# OpenAI field -> Converse inferenceConfig field
_INFERENCE_FIELDS = (
    ("max_tokens", "maxTokens"),
    ("temperature", "temperature"),
    ("top_p", "topP"),
    ("stop", "stopSequences"),
)


def to_converse_request(chat: ChatRequest) -> dict[str, Any]:
    messages = [
        {
            "role": "assistant" if message.role == "assistant" else "user",
            "content": [{"text": message.content}],
        }
        for message in chat.messages
    ]

    inference_config: dict[str, Any] = {}
    for source, target in _INFERENCE_FIELDS:
        value = getattr(chat, source)
        if value is not None:
            inference_config[target] = value

    converse: dict[str, Any] = {"messages": messages}
    # 缺省时由 Bedrock 使用默认值，不能传空对象或 0
    if inference_config:
        converse["inferenceConfig"] = inference_config
    return converse


def _first_text(resp: ConverseResponse) -> str:
    if resp.output is None or resp.output.message is None:
        return ""
    content = resp.output.message.content
    if not content:
        return ""
    return content[0].text or ""


def to_chat_response(converse: ConverseResponse | dict[str, Any], original_model: str) -> dict[str, Any]:
    """Build the OpenAI response; ``model`` is what the client sent, not the Bedrock id."""

    resp = converse if isinstance(converse, ConverseResponse) else ConverseResponse.model_validate(converse)
    usage = resp.usage
    prompt_tokens = (usage.inputTokens or 0) if usage else 0
    completion_tokens = (usage.outputTokens or 0) if usage else 0
    return {
        "id": f"chatcmpl-{uuid.uuid4()}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": original_model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": _first_text(resp)},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }
