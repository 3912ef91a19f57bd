"""Built-in global context shapes.

Each model is a context *kind*: registering an instance with the service
replaces any previous instance of the same class, and every declared field
is merged into tracked events as ``"<ClassName>.<field>"``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field


class PlayerContext(BaseModel):
    """Progression state of the current player."""

    player_id: str | None = Field(default=None, description="Stable player identifier, if known.")
    level: int = Field(default=1, ge=0, description="Current player level.")
    experience: int = Field(default=0, ge=0, description="Accumulated experience points.")
    coins: int = Field(default=0, ge=0, description="Soft currency balance.")


class DeviceContext(BaseModel):
    """Static information about the device the app is running on."""

    platform: str = Field(default="unknown", description="Platform name, e.g. 'android' or 'ios'.")
    os_version: str | None = Field(default=None, description="Operating system version string.")
    app_version: str | None = Field(default=None, description="Application build version.")
    locale: str | None = Field(default=None, description="User interface locale, e.g. 'en-US'.")


class SessionContext(BaseModel):
    """The current play session."""

    session_id: str = Field(..., min_length=1, description="Identifier of the current session.")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="UTC time the session started.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_seconds(self) -> float:
        """Seconds elapsed since the session started."""
        return (datetime.now(UTC) - self.started_at).total_seconds()
