# telehealth/schemas/common/common.py
import re
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def dump(schema: Type[CamelModel], obj: Any) -> Dict[str, Any]:
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def dump_many(schema: Type[CamelModel], items: List[Any]) -> List[Dict[str, Any]]:
    return [dump(schema, item) for item in items]


def validate_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Please provide a valid email")
    return v


def validate_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    phone_clean = re.sub(r"[^\d+]", "", v)
    if not PHONE_PATTERN.match(phone_clean):
        raise ValueError("Invalid phone number format")
    return phone_clean
