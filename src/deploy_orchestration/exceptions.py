"""
Exception hierarchy for the deployment tool.

Every subclass of DeployToolException is an *expected* failure: the message is
meant for the end user and the CLI maps it to the USER_ERROR exit code.
Anything else reaching the top level is treated as a bug.
"""

from typing import Optional


class DeployToolException(Exception):
    """Base class for failures that are reported to the user as-is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RecipeLoaderError(DeployToolException):
    """Recipe search paths were unreadable or held no valid recipe definitions."""


class FailedToGenerateAnyRecommendations(DeployToolException):
    """No recipe in the catalog is applicable to the project."""


class InvalidProjectDefinition(DeployToolException):
    """The project file could not be found or parsed."""


class UnsupportedRecipe(DeployToolException):
    """The requested recipe is unknown or not applicable to the project."""


class InvalidStackName(DeployToolException):
    """The CloudFormation stack name is not valid."""


class DeploymentInProgress(DeployToolException):
    """A deployment was requested while another one runs for the same session."""


class InvalidSaveDirectoryForCdkProject(DeployToolException):
    """The directory chosen for the CDK deployment project is unusable."""


class FailedToFindDirectoryInfo(DeployToolException):
    """A path could not be resolved to a directory."""


class SettingValidationFailed(DeployToolException):
    """An option setting value was rejected during resolution."""

    def __init__(self, setting_id: str, reason: str):
        super().__init__(f"Invalid value for option setting '{setting_id}': {reason}")
        self.setting_id = setting_id
        self.reason = reason


class RecommendationNotReady(DeployToolException):
    """Materialization was requested while some option settings are unresolved or failed."""


class UnknownTypeHint(DeployToolException):
    """A recipe references a type hint with no registered handler."""


class ResourceQueryFailure(DeployToolException):
    """Listing remote resources failed after all retries."""

    def __init__(self, resource_type: str, message: str, attempts: int = 1):
        super().__init__(f"Failed to list {resource_type} after {attempts} attempt(s): {message}")
        self.resource_type = resource_type
        self.attempts = attempts


class MissingCredentials(DeployToolException):
    """A command needing AWS credentials was run without a credential context."""


class DeploymentCommandFailed(DeployToolException):
    """An external CDK command returned a non-zero exit code."""

    def __init__(self, step: str, exit_code: int, recipe_id: Optional[str] = None):
        detail = f" for recipe '{recipe_id}'" if recipe_id else ""
        super().__init__(f"CDK {step} step{detail} failed with exit code {exit_code}")
        self.step = step
        self.exit_code = exit_code
        self.recipe_id = recipe_id


def is_expected_exception(exc: BaseException) -> bool:
    """Return True if the exception carries a message intended for the user."""
    return isinstance(exc, DeployToolException)
