"""Shared schema base.

Learn: the API speaks camelCase (userId, createdAt) while Python attributes
stay snake_case. The alias generator maps one to the other; populate_by_name
lets request bodies use either spelling.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_json(self) -> dict:
        """JSON-ready dict using the wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)
