"""
Renders a recipe's CDK project template into a save directory.

Files ending in ``.j2`` are rendered with jinja2 and written without the
suffix; every other file is copied as is. ``__ProjectName__`` in a relative
path is replaced with the assembly name of the generated project.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from deploy_orchestration.exceptions import RecipeLoaderError
from deploy_orchestration.recommendations import Recommendation
from deploy_orchestration.session import OrchestratorSession
from .constants import PROJECT_NAME_TOKEN, TEMPLATE_SUFFIX

logger = logging.getLogger(__name__)


class TemplateEngine:
    """Generates a CDK project from a recipe template directory."""

    def __init__(self, template_directory: Path):
        if not template_directory.is_dir():
            raise RecipeLoaderError(f"CDK project template not found: {template_directory}")
        self.template_directory = template_directory
        self.environment = Environment(
            loader=FileSystemLoader(str(template_directory)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    @staticmethod
    def build_context(recommendation: Recommendation, session: OrchestratorSession,
                      assembly_name: str) -> Dict[str, Any]:
        recipe = recommendation.recipe
        return {
            "assembly_name": assembly_name,
            "recipe": {"id": recipe.id, "version": recipe.version, "name": recipe.name},
            "settings": dict(recommendation.option_setting_values),
            "account_id": session.account_id,
            "region": session.region,
        }

    def output_path(self, relative: Path, output_directory: Path, assembly_name: str) -> Path:
        parts = [part.replace(PROJECT_NAME_TOKEN, assembly_name) for part in relative.parts]
        if parts[-1].endswith(TEMPLATE_SUFFIX):
            parts[-1] = parts[-1][:-len(TEMPLATE_SUFFIX)]
        return output_directory.joinpath(*parts)

    def generate(self, recommendation: Recommendation, session: OrchestratorSession,
                 output_directory: Path, assembly_name: str,
                 written: Optional[List[Path]] = None) -> List[Path]:
        """
        Render the template into ``output_directory``.

        Args:
            written: Optional list collecting every file as it is written, so a
                caller can clean up after a failure part way through

        Returns:
            Files written, in order
        """
        written = written if written is not None else []
        context = self.build_context(recommendation, session, assembly_name)

        for source in sorted(p for p in self.template_directory.rglob("*") if p.is_file()):
            relative = source.relative_to(self.template_directory)
            target = self.output_path(relative, output_directory, assembly_name)
            target.parent.mkdir(parents=True, exist_ok=True)

            if source.name.endswith(TEMPLATE_SUFFIX):
                template = self.environment.get_template(relative.as_posix())
                target.write_text(template.render(**context), encoding="utf-8")
            else:
                shutil.copyfile(source, target)
            written.append(target)
            logger.debug("Generated %s", target)

        logger.info("Generated %d files for %s from %s", len(written), assembly_name, recommendation.recipe.id)
        return written
