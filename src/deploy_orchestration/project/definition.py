"""
Project definition model.

A ProjectDefinition is the analysed metadata of the application being
deployed. It is produced once by ProjectDefinitionParser and only read
afterwards.
"""

from pathlib import Path
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field


class ProjectDefinition(BaseModel):
    """Analysed metadata of the target application."""

    model_config = {"frozen": True}

    project_path: Path = Field(..., description="Path to the project file")
    assembly_name: str = Field(..., min_length=1, description="Assembly / module name")
    target_framework: Optional[str] = Field(default=None, description="e.g. net6.0, netcoreapp3.1")
    sdk_type: Optional[str] = Field(default=None, description="Project SDK, e.g. Microsoft.NET.Sdk.Web")
    properties: Dict[str, str] = Field(default_factory=dict, description="Project file properties")
    dependencies: FrozenSet[str] = Field(default_factory=frozenset, description="Package references")
    project_files: FrozenSet[str] = Field(default_factory=frozenset, description="Files in the project directory")

    @property
    def project_directory(self) -> Path:
        """Directory containing the project file."""
        return self.project_path.parent

    def has_file(self, name: str) -> bool:
        lowered = name.lower()
        return any(f.lower() == lowered for f in self.project_files)
