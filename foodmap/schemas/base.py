"""Shared pydantic base for wire DTOs."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model that reads and writes camelCase keys but is built with snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
