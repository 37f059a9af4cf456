from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, JsonValue

# Unsigned 64-bit ceiling; expiry arithmetic saturates here.
MAX_EXPIRES_AT = 2**64 - 1


class Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Any JSON-representable value. Plain text is just a JSON string.
    data: JsonValue = Field(validation_alias=AliasChoices("data", "payload"))
    # Absolute Unix time in whole seconds; None never expires.
    expires_at: int | None = Field(default=None, ge=0, le=MAX_EXPIRES_AT)

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class Snapshot(BaseModel):
    schema_version: int = Field(default=1, ge=1)
    entries: dict[str, Entry] = Field(default_factory=dict)
