"""CDK project materialization and the external command line tool."""

from .app_settings import CdkAppSettingsSerializer
from .command_line import CommandLineWrapper, CommandResult, SubprocessCommandLineWrapper
from .constants import AWS_EXECUTION_ENV, SETTINGS_PATH_CDK_CONTEXT_PARAMETER
from .project_handler import CdkProjectHandler
from .template_engine import TemplateEngine


__all__ = [
    "AWS_EXECUTION_ENV",
    "SETTINGS_PATH_CDK_CONTEXT_PARAMETER",
    "CdkAppSettingsSerializer",
    "CdkProjectHandler",
    "CommandLineWrapper",
    "CommandResult",
    "SubprocessCommandLineWrapper",
    "TemplateEngine",
]
