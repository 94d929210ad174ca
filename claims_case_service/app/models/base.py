import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict

from bson.decimal128 import Decimal128
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel


# Fixed-point amount. Decimal in memory, Decimal128 in Mongo, a plain number in JSON.
Money = Annotated[
    Decimal,
    Field(max_digits=14, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def to_bson_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Top-level Decimal -> Decimal128, for documents and $set payloads alike."""
    return {k: Decimal128(v) if isinstance(v, Decimal) else v for k, v in values.items()}


class ApiModel(BaseModel):
    """snake_case in Python and Mongo, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class MongoDocument(ApiModel):
    @model_validator(mode="before")
    @classmethod
    def _decimal128_to_decimal(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v.to_decimal() if isinstance(v, Decimal128) else v for k, v in data.items()}
        return data

    def to_mongo(self) -> Dict[str, Any]:
        return to_bson_values(self.model_dump())
