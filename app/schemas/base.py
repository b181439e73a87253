"""
Shared schema helpers.
"""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict

from app.utils.datetime_utils import ensure_utc


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split('_')
    return components[0] + ''.join(x.title() for x in components[1:])


# SQLite returns naive datetimes; everything on the wire is explicit UTC
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base schema exposing camelCase on the wire while accepting snake_case too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_payload(self) -> dict:
        """JSON-ready dict with wire (camelCase) keys, as sent over Socket.IO."""
        return self.model_dump(mode="json", by_alias=True)
