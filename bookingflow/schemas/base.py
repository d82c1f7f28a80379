"""
Base Pydantic schemas
"""

from pydantic import BaseModel, BeforeValidator, ConfigDict
from typing import Annotated, Any


def _to_identifier(value: Any) -> Any:
    # Database rows carry UUIDs; the booking core treats ids as opaque strings
    if value is None or isinstance(value, str):
        return value
    return str(value)


Identifier = Annotated[str, BeforeValidator(_to_identifier)]


class BaseSchema(BaseModel):
    """Base schema with common configuration"""
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )
