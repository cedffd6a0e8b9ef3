from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


U64_MAX = 2**64 - 1


class Gender(str, Enum):
    FEMALE = "female"
    MALE = "male"
    UNSPECIFIED = "unspecified"


class User(BaseModel):
    """A user record as exchanged over the wire (camelCase keys).

    Records are immutable once parsed, so snapshots handed out by the store
    can share instances safely.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int = Field(ge=0, le=U64_MAX, strict=True)
    first_name: str | None = None
    last_name: str
    gender: Gender

    def to_wire(self) -> dict:
        # firstName is omitted rather than sent as null.
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
