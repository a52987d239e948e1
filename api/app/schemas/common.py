from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case fields exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def submitted_fields(self) -> dict[str, Any]:
        """Fields the client actually sent, keyed by their JSON names, extras included."""
        fields = self.model_dump(by_alias=True, exclude_unset=True)
        fields.update(self.model_extra or {})
        return fields


class DeletedOut(BaseModel):
    deleted: str
