"""Centralized logging setup for the deployment tool.

Configures the root logger to write to stderr only. Output of the external
CDK commands is forwarded through the ``deploy_orchestration.cdk.output``
logger so it shows up in the same stream.
"""
import logging
from typing import Union

CDK_OUTPUT_LOGGER = "deploy_orchestration.cdk.output"


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Configure the root logger with a single console handler.

    Args:
        level: Log level name or number (``-d/--diagnostics`` passes DEBUG)

    Returns:
        The logger used for external command output
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Console handler (stderr)
    if not any(isinstance(h, logging.StreamHandler) for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root_logger.addHandler(console)
    for handler in root_logger.handlers:
        handler.setLevel(level)

    return logging.getLogger(CDK_OUTPUT_LOGGER)
