"""Base schema shared by every API DTO."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Pydantic model that speaks camelCase on the wire.

    Accepts both camelCase and snake_case input; responses are serialized
    by alias (FastAPI's default for response_model).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
