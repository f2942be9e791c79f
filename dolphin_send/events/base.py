"""Normalized message model sent to the receiving server."""

from pydantic import BaseModel, ConfigDict, Field

from .types import MessageSource


class MinecraftMessage(BaseModel):
    """A player or server occurrence ready to be delivered.

    Serialized with ``by_alias=True`` the wire object is
    ``{"name": ..., "content": ..., "source": "Player"|"Server", "uuid": ...}``.
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(
        default="",
        serialization_alias="name",
        description="Player username, empty for server messages",
    )
    content: str = Field(..., description="Human readable message text")
    source: MessageSource = Field(..., description="Message origin")
    uuid: str = Field(default="", description="Player UUID if known")

    @classmethod
    def from_player(cls, username: str, content: str, uuid: str = "") -> "MinecraftMessage":
        return cls(
            username=username,
            content=content,
            source=MessageSource.PLAYER,
            uuid=uuid,
        )

    @classmethod
    def from_server(cls, content: str) -> "MinecraftMessage":
        return cls(content=content, source=MessageSource.SERVER)

    def to_json(self) -> str:
        """Serialize using the wire field names."""
        return self.model_dump_json(by_alias=True)
