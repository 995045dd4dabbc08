"""
Shared base for the versioned API payload schema.

Payloads use camelCase on the wire (``isCheckout``, ``userId``) and
snake_case in Python; both spellings are accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
