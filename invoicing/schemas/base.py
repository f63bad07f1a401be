"""
Base model for records that are persisted or sent over the wire.
Python attributes are snake_case, serialized keys are camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_record(self) -> dict:
        """Serialize with the persisted (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)
