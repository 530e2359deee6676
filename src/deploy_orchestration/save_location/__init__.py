"""Save-location governance for generated deployment projects."""

from .governor import (
    DEFAULT_SAVE_DIRECTORY_SUFFIX,
    NESTED_DIRECTORY_MESSAGE,
    NON_EMPTY_DIRECTORY_MESSAGE,
    SaveCdkDirectory,
    SaveDirectoryGovernor,
)


__all__ = [
    "DEFAULT_SAVE_DIRECTORY_SUFFIX",
    "NESTED_DIRECTORY_MESSAGE",
    "NON_EMPTY_DIRECTORY_MESSAGE",
    "SaveCdkDirectory",
    "SaveDirectoryGovernor",
]
