"""
Option setting validators.

Each validator returns a human readable reason when the value is rejected
and None when it is accepted. Empty values are only judged by RequiredValidator.
"""

import re
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _ValidatorBase(BaseModel):
    model_config = {"frozen": True}

    message: Optional[str] = Field(default=None, description="Custom failure message")

    def validate_value(self, value: Any) -> Optional[str]:
        raise NotImplementedError


class RequiredValidator(_ValidatorBase):
    type: Literal["required"]

    def validate_value(self, value: Any) -> Optional[str]:
        if _is_empty(value):
            return self.message or "a value is required"
        return None


class RegexValidator(_ValidatorBase):
    type: Literal["regex"]
    regex: str

    def validate_value(self, value: Any) -> Optional[str]:
        if _is_empty(value):
            return None
        if re.fullmatch(self.regex, str(value)) is None:
            return self.message or f"'{value}' does not match the pattern {self.regex}"
        return None


class RangeValidator(_ValidatorBase):
    type: Literal["range"]
    min: Optional[float] = None
    max: Optional[float] = None

    def validate_value(self, value: Any) -> Optional[str]:
        if _is_empty(value):
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return self.message or f"'{value}' is not a number"
        if self.min is not None and value < self.min:
            return self.message or f"{value} is lower than the minimum {self.min:g}"
        if self.max is not None and value > self.max:
            return self.message or f"{value} is greater than the maximum {self.max:g}"
        return None


class AllowedValuesValidator(_ValidatorBase):
    type: Literal["allowed-values"]
    values: List[Any] = Field(..., min_length=1)

    def validate_value(self, value: Any) -> Optional[str]:
        if _is_empty(value):
            return None
        if value not in self.values:
            allowed = ", ".join(str(v) for v in self.values)
            return self.message or f"'{value}' is not one of: {allowed}"
        return None


OptionSettingValidator = Annotated[
    Union[RequiredValidator, RegexValidator, RangeValidator, AllowedValuesValidator],
    Field(discriminator="type"),
]
