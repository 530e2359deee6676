"""
Save-location governance for generated deployment projects.

Chooses where a CDK deployment project is written, makes sure the location
is an empty directory outside the application's own project directory, and
removes the directory again when it was created here and then rejected.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from deploy_orchestration.cdk.command_line import CommandLineWrapper
from deploy_orchestration.exceptions import FailedToFindDirectoryInfo, InvalidSaveDirectoryForCdkProject
from deploy_orchestration.project import ProjectDefinition
from deploy_orchestration.prompts import Prompter

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DIRECTORY_SUFFIX = "DeploymentProject"

NON_EMPTY_DIRECTORY_MESSAGE = (
    "The directory specified for saving the CDK project is non-empty. "
    "Please provide an empty directory path and try again."
)
NESTED_DIRECTORY_MESSAGE = (
    "The directory used to save the CDK deployment project is contained inside of "
    "the target deployment project directory. Please specify a different directory and try again."
)
SOURCE_CONTROL_QUESTION = (
    "The target directory for saving the CDK deployment project is not being tracked "
    "by a source control system. Do you still want to continue?"
)


@dataclass(frozen=True)
class SaveCdkDirectory:
    """A validated save location and whether it was created for this generation."""
    path: Path
    created: bool
    created_root: Optional[Path] = None


def _full_path(path: Union[str, Path]) -> Path:
    try:
        return Path(os.path.abspath(os.path.expanduser(str(path))))
    except (TypeError, ValueError) as e:
        raise FailedToFindDirectoryInfo(f"Failed to find directory info for the path - {path}") from e


def _first_missing_ancestor(path: Path) -> Optional[Path]:
    """Highest directory that mkdir(parents=True) would create for path."""
    if path.exists():
        return None
    missing = path
    while not missing.parent.exists() and missing.parent != missing:
        missing = missing.parent
    return missing


class SaveDirectoryGovernor:
    """Derives, creates, validates and rolls back CDK project save directories."""

    def __init__(self, command_line: CommandLineWrapper, prompter: Prompter):
        self.command_line = command_line
        self.prompter = prompter

    def generate_default_save_directory_path(self, project_path: Union[str, Path]) -> Path:
        """
        Sibling of the project directory named ``<ProjectDir>DeploymentProject``.

        If that exists, an increasing suffix is appended until a free name is
        found. Only existence is checked, never contents.

        Example:
            /code/App/App.csproj -> /code/AppDeploymentProject
            (or /code/AppDeploymentProject1 if the first one exists)
        """
        project_directory = str(_full_path(project_path).parent)
        candidate = Path(project_directory + DEFAULT_SAVE_DIRECTORY_SUFFIX)
        suffix = 0
        while candidate.exists():
            suffix += 1
            candidate = Path(f"{project_directory}{DEFAULT_SAVE_DIRECTORY_SUFFIX}{suffix}")
        return candidate

    def create_save_directory(self, path: Union[str, Path]) -> bool:
        """
        Create the directory if it does not exist yet.

        Returns:
            True if a new directory was created

        Raises:
            InvalidSaveDirectoryForCdkProject: If the directory cannot be created
        """
        path = _full_path(path)
        if path.is_dir():
            return False
        try:
            path.mkdir(parents=True)
        except OSError as e:
            raise InvalidSaveDirectoryForCdkProject(
                "Failed to create a directory at the specified path."
            ) from e
        logger.debug("Created save directory %s", path)
        return True

    def validate_save_directory(self, path: Union[str, Path], project_path: Union[str, Path]) -> str:
        """
        Run every save directory check.

        Returns:
            The concatenated error messages, or an empty string if the
            directory is acceptable
        """
        messages = [self._check_directory_empty(path), self._check_not_inside_project(path, project_path)]
        return "\n".join(messages).strip()

    def prepare_save_directory(self, requested_path: Optional[Union[str, Path]],
                               project_definition: ProjectDefinition) -> SaveCdkDirectory:
        """
        Resolve the directory the deployment project will be saved to.

        Raises:
            InvalidSaveDirectoryForCdkProject: If the directory fails validation.
                A directory created by this call is removed first.
        """
        if requested_path:
            path = _full_path(requested_path)
        else:
            path = self.generate_default_save_directory_path(project_definition.project_path)

        created_root = _first_missing_ancestor(path)
        created = self.create_save_directory(path)
        save_directory = SaveCdkDirectory(
            path=path, created=created, created_root=created_root if created else None
        )

        error_message = self.validate_save_directory(path, project_definition.project_path)
        if error_message:
            self.rollback(save_directory)
            raise InvalidSaveDirectoryForCdkProject(error_message)

        logger.info("CDK deployment project will be saved at %s", path)
        return save_directory

    def is_directory_under_source_control(self, path: Union[str, Path]) -> bool:
        """True if git or svn reports a status for the directory."""
        git_status = self.command_line.try_run_with_result(["git", "status"], working_directory=path)
        if git_status.success:
            return True
        svn_status = self.command_line.try_run_with_result(["svn", "status"], working_directory=path)
        return svn_status.success

    def confirm_source_control(self, save_directory: SaveCdkDirectory) -> bool:
        """
        Ask before saving into a directory that is not under source control.

        Returns:
            False if the user declined; the directory has then been rolled back
        """
        if self.is_directory_under_source_control(save_directory.path):
            return True
        if self.prompter.ask_yes_no(SOURCE_CONTROL_QUESTION, default=True):
            return True
        logger.info("Generation cancelled, %s is not under source control", save_directory.path)
        self.rollback(save_directory)
        return False

    def rollback(self, save_directory: SaveCdkDirectory) -> None:
        """Remove the directory and any parents that were created for this generation."""
        if not save_directory.created:
            return
        target = save_directory.created_root or save_directory.path
        if target.exists():
            shutil.rmtree(target)
            logger.debug("Removed save directory %s", target)

    @staticmethod
    def _check_directory_empty(path: Union[str, Path]) -> str:
        path = _full_path(path)
        if path.is_dir() and any(path.iterdir()):
            return NON_EMPTY_DIRECTORY_MESSAGE
        return ""

    @staticmethod
    def _check_not_inside_project(path: Union[str, Path], project_path: Union[str, Path]) -> str:
        save_directory = os.path.normcase(str(_full_path(path)) + os.sep).lower()
        project_directory = os.path.normcase(str(_full_path(project_path).parent) + os.sep).lower()
        if save_directory.startswith(project_directory):
            return NESTED_DIRECTORY_MESSAGE
        return ""
