"""Shared schema base and field types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Money travels as a JSON number; stored as NUMERIC(14, 2)
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Amounts accepted on requests: whole cents that fit the column
MoneyInput = Annotated[Money, Field(max_digits=14, decimal_places=2)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class VersionedRequest(CamelModel):
    """Mutation body carrying the optional optimistic-concurrency token."""

    version: int | None = None
