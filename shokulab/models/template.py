"""Contract template models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FieldType(str, Enum):
    """Input widget for a custom field"""
    TEXT = "text"
    TEXTAREA = "textarea"


class ContractField(BaseModel):
    """A fill-in field of a contract template"""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = True
    placeholder: Optional[str] = None


class ContractTemplate(BaseModel):
    """A contract document skeleton. Defined once, never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str                      # '食材売買契約書'
    user_friendly_title: str        # '💰 食材を売買したい'
    description: str
    custom_fields: tuple[ContractField, ...]
    template: str                   # text with {token} placeholders

    @property
    def required_fields(self) -> list[ContractField]:
        return [f for f in self.custom_fields if f.required]

    @property
    def field_keys(self) -> list[str]:
        return [f.key for f in self.custom_fields]


class MandatoryClauses(BaseModel):
    """Legal boilerplate injected into every generated contract"""
    model_config = ConfigDict(frozen=True)

    platform_disclaimer: str
    final_clause: str               # contains {contractDate}
