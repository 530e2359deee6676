"""
Parses .NET project files into ProjectDefinition objects.

Accepts either the project file itself or a directory holding exactly one
``*.csproj`` / ``*.fsproj`` file.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Set, Union

from deploy_orchestration.exceptions import InvalidProjectDefinition
from .definition import ProjectDefinition

logger = logging.getLogger(__name__)

PROJECT_FILE_PATTERNS = ("*.csproj", "*.fsproj")


def _strip_namespaces(root: ET.Element) -> None:
    """Legacy project files declare the MSBuild xmlns on every element."""
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = element.tag.split("}", 1)[1]


class ProjectDefinitionParser:
    """Reads a project file and the listing of its directory."""

    def parse(self, project_path: Union[str, Path]) -> ProjectDefinition:
        """
        Parse a project into a ProjectDefinition.

        Args:
            project_path: Project file, or the directory that contains it

        Returns:
            ProjectDefinition for the project

        Raises:
            InvalidProjectDefinition: If no project file is found or it is not valid XML
        """
        project_file = self._find_project_file(Path(project_path).resolve())

        try:
            root = ET.parse(project_file).getroot()
        except (ET.ParseError, OSError) as e:
            raise InvalidProjectDefinition(f"Failed to parse project file {project_file}: {e}")
        _strip_namespaces(root)

        properties = self._read_properties(root)
        dependencies = self._read_package_references(root)
        assembly_name = properties.get("AssemblyName") or project_file.stem

        project_files = frozenset(
            p.name for p in project_file.parent.iterdir() if p.is_file()
        )

        definition = ProjectDefinition(
            project_path=project_file,
            assembly_name=assembly_name,
            target_framework=properties.get("TargetFramework"),
            sdk_type=root.attrib.get("Sdk"),
            properties=properties,
            dependencies=frozenset(dependencies),
            project_files=project_files,
        )
        logger.debug("Parsed project %s (sdk=%s, framework=%s)",
                     definition.assembly_name, definition.sdk_type, definition.target_framework)
        return definition

    def _find_project_file(self, path: Path) -> Path:
        if path.is_file():
            return path
        if not path.is_dir():
            raise InvalidProjectDefinition(f"Project path does not exist: {path}")

        candidates = []
        for pattern in PROJECT_FILE_PATTERNS:
            candidates.extend(sorted(path.glob(pattern)))
        if not candidates:
            raise InvalidProjectDefinition(f"No project file found in {path}")
        if len(candidates) > 1:
            names = ", ".join(c.name for c in candidates)
            raise InvalidProjectDefinition(
                f"Multiple project files found in {path} ({names}). Please specify the project file."
            )
        return candidates[0]

    @staticmethod
    def _read_properties(root: ET.Element) -> Dict[str, str]:
        properties: Dict[str, str] = {}
        for group in root.iter("PropertyGroup"):
            for prop in group:
                if prop.text and prop.text.strip():
                    properties[prop.tag] = prop.text.strip()
        return properties

    @staticmethod
    def _read_package_references(root: ET.Element) -> Set[str]:
        return {
            ref.attrib["Include"]
            for ref in root.iter("PackageReference")
            if "Include" in ref.attrib
        }
