"""Base schema with camelCase wire names"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes camelCase"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
