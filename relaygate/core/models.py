"""Client-facing, Bedrock Converse and team models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """OpenAI chat completion request; fields we do not translate are ignored."""

    model_config = ConfigDict(extra="ignore")

    model: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(min_length=1)
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop: list[str] | None = None

    @field_validator("stop", mode="before")
    @classmethod
    def _single_stop(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value


class ConverseContentBlock(BaseModel):
    text: str | None = None


class ConverseMessage(BaseModel):
    role: str = "assistant"
    content: list[ConverseContentBlock] = Field(default_factory=list)


class ConverseOutput(BaseModel):
    message: ConverseMessage | None = None


class ConverseUsage(BaseModel):
    inputTokens: int | None = None
    outputTokens: int | None = None


class ConverseResponse(BaseModel):
    output: ConverseOutput | None = None
    usage: ConverseUsage | None = None


class TeamInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
    team_id: str = Field(alias="teamId")
    name: str = ""
    created_at: str = Field(alias="createdAt")
    limited: bool = False

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True)


class CreateTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    team_id: str = Field(default="", alias="teamId")
    name: str = ""
    limited: bool = False
