import json as jsonlib
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO 8601 UTC with millisecond precision, e.g. 2026-10-18T17:34:00.123Z"""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ValidationRecord:
    id: str
    schema: str
    json: str
    created_at: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


_REQUIRED_MESSAGES = {
    "schema_": "Schema is required and cannot be null",
    "json_": "JSON is required and cannot be null",
}


class SavePayload(BaseModel):
    """
    Shape of a save request: a schema and a document, both any non-null JSON value.
    """
    model_config = ConfigDict(populate_by_name=True)

    schema_: Any = Field(alias="schema", description="JSON Schema document")
    json_: Any = Field(alias="json", description="JSON instance document")

    @field_validator("schema_", "json_")
    @classmethod
    def _not_null(cls, value, info):
        if value is None:
            raise ValueError(_REQUIRED_MESSAGES[info.field_name])
        return value

    def serialized(self) -> Tuple[str, str]:
        """Compact JSON text of (schema, json) as handed to storage."""
        return (
            jsonlib.dumps(self.schema_, separators=(",", ":"), ensure_ascii=False),
            jsonlib.dumps(self.json_, separators=(",", ":"), ensure_ascii=False),
        )
