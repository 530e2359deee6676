"""Persisted settings of previous deployments."""

from .previous_settings import DeploymentRecord, PreviousDeploymentSettings


__all__ = ["DeploymentRecord", "PreviousDeploymentSettings"]
