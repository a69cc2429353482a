"""Shared base model for wire payloads."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model for API payloads.

    The API speaks camelCase (``dueDate``, ``createdAt``); Python code uses
    snake_case. Either form is accepted on input, and ``to_api()`` produces the
    camelCase JSON-ready dict that goes on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_api(self, *, exclude_unset: bool = False, exclude_none: bool = False) -> dict:
        """Dump to a JSON-ready dict keyed by the API's field names."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=exclude_unset,
            exclude_none=exclude_none,
        )
