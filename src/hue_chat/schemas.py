from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HealthResponse(BaseModel):
    ok: bool = Field(..., description="Process is alive.")


class ChatUser(BaseModel):
    id: str = Field(..., description="Host user id; credentials are keyed by it.", examples=["u-42"])
    username: str = Field(..., description="Host user name.", examples=["alice"])


class RoomRef(BaseModel):
    """Opaque host room handle; extra fields are kept and echoed back to the host."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Host room id.", examples=["GENERAL"])


class CommandRequest(BaseModel):
    command: str = Field(..., description="Slash command name without the leading slash.", examples=["hue-lights"])
    args: list[str] | None = Field(
        default=None,
        description="Whitespace-split command arguments.",
        examples=[["1,2", "on=true", "bri=100"]],
    )
    text: str | None = Field(
        default=None,
        description="Raw argument text; used when `args` is not provided.",
        examples=["1,2 on=true bri=100"],
    )
    user: ChatUser
    room: RoomRef

    @model_validator(mode="after")
    def _fill_args(self) -> "CommandRequest":
        if self.args is None:
            self.args = (self.text or "").split()
        self.command = self.command.strip().lstrip("/")
        return self


class CommandResponse(BaseModel):
    ok: bool
    command: str
    messages: int = Field(..., description="Number of chat notifications emitted.")


class UnauthorizedResponse(BaseModel):
    detail: dict[str, Any] = Field(
        ...,
        description="Always `{ \"error\": \"unauthorized\" }` when auth fails.",
        examples=[{"error": "unauthorized"}],
    )


class MessageAction(BaseModel):
    type: Literal["button"] = "button"
    text: str
    url: str | None = None
    msg: str | None = None
    msg_in_chat_window: bool = True


class AttachmentField(BaseModel):
    title: str
    value: str
    short: bool = True


class MessageAttachment(BaseModel):
    title: str | None = None
    text: str | None = None
    color: str | None = None
    collapsed: bool = False
    fields: list[AttachmentField] = Field(default_factory=list)
    actions: list[MessageAction] = Field(default_factory=list)


class ChatMessage(BaseModel):
    text: str | None = None
    attachments: list[MessageAttachment] = Field(default_factory=list)

    def summary(self) -> str:
        parts = [self.text] if self.text else []
        parts.extend(a.title for a in self.attachments if a.title)
        return " | ".join(parts)


class PreviewItem(BaseModel):
    id: str = Field(..., description="Resource id of the previewed item.", examples=["1"])
    value: str = Field(..., description="Text shown to the user; sent back as the command argument.", examples=["Living Room"])


class PreviewResponse(BaseModel):
    title: str = Field(..., description="Preview heading, or the reason no items could be listed.", examples=["Groups"])
    items: list[PreviewItem] = Field(default_factory=list)
