"""
Shared pydantic base for serializable domain records.
"""

import uuid
from datetime import datetime
from typing import Any, Dict

import pendulum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return pendulum.now("UTC")


class DomainModel(BaseModel):
    """
    Immutable record whose serialized field names are camelCase.

    Either the camelCase alias or the attribute name is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def to_json_dict(model: BaseModel) -> Dict[str, Any]:
    """Serialize a record to a JSON-compatible dict using the wire field names."""
    return model.model_dump(mode="json", by_alias=True)
