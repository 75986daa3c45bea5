"""Discord user model for the logged-in session."""

from typing import Optional

from pydantic import BaseModel, Field


class DiscordUser(BaseModel):
    """
    Discord profile of an authenticated user.

    Created from the OAuth ``/users/@me`` response and stored in the server
    session. The role is never stored here; it is resolved per request.
    """

    user_id: str = Field(..., description="Discord user ID (Discord snowflake)")
    username: str = Field(..., description="Discord username", min_length=1)
    discriminator: Optional[str] = Field(None, description="Legacy discriminator, '0' for new usernames")
    avatar: Optional[str] = Field(None, description="Avatar hash")

    @property
    def display_name(self) -> str:
        if self.discriminator and self.discriminator != "0":
            return f"{self.username}#{self.discriminator}"
        return self.username

    @classmethod
    def from_discord_profile(cls, profile: dict) -> "DiscordUser":
        return cls(
            user_id=str(profile["id"]),
            username=profile.get("username") or str(profile["id"]),
            discriminator=profile.get("discriminator"),
            avatar=profile.get("avatar"),
        )

    class Config:
        """Pydantic configuration."""
        json_schema_extra = {
            "example": {
                "user_id": "123456789012345678",
                "username": "alice",
                "discriminator": "0",
                "avatar": "a_1b2c3d",
            }
        }
