"""Contract persistence collaborator interface."""

from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PersistedContract(BaseModel):
    """A stored contract as returned by the platform."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    user_id: str | None = Field(default=None, alias="userId")
    version: str
    json_: dict[str, Any] = Field(default_factory=dict, alias="json")
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ContractStore(Protocol):
    """Persistent storage for canonical and personalized contracts."""

    def find_latest_by_user(self, user_id: str) -> PersistedContract | None: ...

    def find_latest_canonical(self) -> PersistedContract | None: ...

    def create(
        self,
        json: dict[str, Any],
        version: str,
        meta: dict[str, Any],
        created_by: str,
        user_id: str | None = None,
    ) -> PersistedContract: ...
