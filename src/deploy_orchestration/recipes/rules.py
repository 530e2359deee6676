"""
Applicability rules for recipes.

Rules are a closed set of tagged variants (discriminated on ``type``). Each
variant evaluates a single predicate against a read-only ProjectFacts table;
evaluation is pure so recipes can be checked concurrently.
"""

import re
from types import MappingProxyType
from typing import Annotated, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from deploy_orchestration.project.capabilities import SystemCapabilities
from deploy_orchestration.project.definition import ProjectDefinition


def version_key(value: str) -> Tuple[int, ...]:
    """Turn a version-like string (``net6.0``, ``netcoreapp3.1``, ``1.2.0``) into a comparable tuple."""
    return tuple(int(part) for part in re.findall(r"\d+", str(value)))


def _compare_versions(left: str, right: str) -> int:
    a, b = version_key(left), version_key(right)
    width = max(len(a), len(b))
    a = a + (0,) * (width - len(a))
    b = b + (0,) * (width - len(b))
    return (a > b) - (a < b)


class ProjectFacts:
    """Read-only fact table the rules are evaluated against."""

    def __init__(self, project_definition: ProjectDefinition, capabilities: SystemCapabilities):
        fields = {
            "assembly_name": project_definition.assembly_name,
            "target_framework": project_definition.target_framework,
            "sdk_type": project_definition.sdk_type,
        }
        for name, value in project_definition.properties.items():
            fields[f"property.{name}"] = value
        self._fields: Mapping[str, Optional[str]] = MappingProxyType(fields)
        self.files = frozenset(f.lower() for f in project_definition.project_files)
        self.dependencies = frozenset(d.lower() for d in project_definition.dependencies)
        self.capabilities = capabilities.as_flags()

    def get(self, field: str) -> Optional[str]:
        return self._fields.get(field)


class _RuleBase(BaseModel):
    model_config = {"frozen": True}

    negate: bool = Field(default=False, description="Invert the predicate")

    def evaluate(self, facts: ProjectFacts) -> bool:
        result = self._test(facts)
        return not result if self.negate else result

    def _test(self, facts: ProjectFacts) -> bool:
        raise NotImplementedError


class FieldEqualsRule(_RuleBase):
    """A project field equals one of the listed values (case-insensitive)."""
    type: Literal["field-equals"]
    field: str
    values: List[str] = Field(..., min_length=1)

    @field_validator("values", mode="before")
    @classmethod
    def ensure_list(cls, v):
        if isinstance(v, (str, int, float)):
            return [str(v)]
        return [str(x) for x in v] if v is not None else v

    def _test(self, facts: ProjectFacts) -> bool:
        actual = facts.get(self.field)
        if actual is None:
            return False
        return actual.lower() in {v.lower() for v in self.values}


class FieldRangeRule(_RuleBase):
    """A version-like project field lies within [min, max]; either bound may be omitted."""
    type: Literal["field-range"]
    field: str
    min: Optional[str] = None
    max: Optional[str] = None

    @field_validator("min", "max", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        return None if v is None else str(v)

    def _test(self, facts: ProjectFacts) -> bool:
        actual = facts.get(self.field)
        if actual is None or not version_key(actual):
            return False
        if self.min is not None and _compare_versions(actual, self.min) < 0:
            return False
        if self.max is not None and _compare_versions(actual, self.max) > 0:
            return False
        return True


class FileExistsRule(_RuleBase):
    """A file with this name exists in the project directory."""
    type: Literal["file-exists"]
    path: str

    def _test(self, facts: ProjectFacts) -> bool:
        return self.path.lower() in facts.files


class DependencyPresentRule(_RuleBase):
    """The project declares a package reference."""
    type: Literal["dependency-present"]
    name: str

    def _test(self, facts: ProjectFacts) -> bool:
        return self.name.lower() in facts.dependencies


class CapabilityPresentRule(_RuleBase):
    """The host has a capability (``docker``, ``nodejs``, ``docker-linux``...)."""
    type: Literal["capability-present"]
    capability: str

    def _test(self, facts: ProjectFacts) -> bool:
        return self.capability.lower() in facts.capabilities


RecipeRule = Annotated[
    Union[FieldEqualsRule, FieldRangeRule, FileExistsRule, DependencyPresentRule, CapabilityPresentRule],
    Field(discriminator="type"),
]
