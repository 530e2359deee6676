"""
Remote resource listing used by type hints.

ResourceQueryer is the seam between type hints and AWS. AwsCliResourceQueryer
asks the AWS CLI, StaticResourceQueryer serves a fixed inventory.
RetryingResourceQueryer retries a failing listing before giving up with
ResourceQueryFailure.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, TypeVar

from deploy_orchestration.exceptions import DeployToolException, ResourceQueryFailure

if TYPE_CHECKING:
    from deploy_orchestration.cdk.command_line import CommandLineWrapper

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteResource:
    """An existing cloud resource: display name plus its ARN."""
    name: str
    ref: str


class ResourceQueryer(ABC):
    """Lists existing AWS resources."""

    @abstractmethod
    def list_ecs_clusters(self) -> List[RemoteResource]:
        ...

    @abstractmethod
    def list_iam_roles(self, service_principal: Optional[str] = None) -> List[RemoteResource]:
        ...

    @abstractmethod
    def list_beanstalk_applications(self) -> List[RemoteResource]:
        ...


class StaticResourceQueryer(ResourceQueryer):
    """Serves resources from memory (offline runs, tests)."""

    def __init__(self, resources: Optional[Dict[str, List[RemoteResource]]] = None):
        self.resources = resources or {}

    def list_ecs_clusters(self):
        return list(self.resources.get("ecs-clusters", []))

    def list_iam_roles(self, service_principal=None):
        key = f"iam-roles:{service_principal}" if service_principal else "iam-roles"
        return list(self.resources.get(key, self.resources.get("iam-roles", [])))

    def list_beanstalk_applications(self):
        return list(self.resources.get("beanstalk-applications", []))


class RetryingResourceQueryer(ResourceQueryer):
    """Retries the wrapped queryer's calls."""

    def __init__(self, inner: ResourceQueryer, retries: int = 3, delay: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.inner = inner
        self.retries = max(1, retries)
        self.delay = delay
        self._sleep = sleep

    def _call(self, resource_type: str, fn: Callable[[], T]) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                return fn()
            except Exception as e:
                # User errors such as missing credentials do not go away on retry
                if isinstance(e, DeployToolException) and not isinstance(e, ResourceQueryFailure):
                    raise
                last_error = e
                logger.warning("Listing %s failed (attempt %d/%d): %s",
                               resource_type, attempt, self.retries, e)
                if attempt < self.retries:
                    self._sleep(self.delay * attempt)
        raise ResourceQueryFailure(resource_type, str(last_error), self.retries) from last_error

    def list_ecs_clusters(self):
        return self._call("ECS clusters", self.inner.list_ecs_clusters)

    def list_iam_roles(self, service_principal=None):
        return self._call("IAM roles", lambda: self.inner.list_iam_roles(service_principal))

    def list_beanstalk_applications(self):
        return self._call("Elastic Beanstalk applications", self.inner.list_beanstalk_applications)


class AwsCliResourceQueryer(ResourceQueryer):
    """Lists resources by running the AWS CLI with JSON output."""

    def __init__(self, command_line: "CommandLineWrapper"):
        self.command_line = command_line

    def _query(self, resource_type: str, command: Sequence[str]) -> Dict[str, Any]:
        result = self.command_line.run(["aws", *command, "--output", "json"],
                                       need_credentials=True, stream_output=False)
        if not result.success:
            raise ResourceQueryFailure(resource_type, f"aws {' '.join(command)} exited with {result.exit_code}")
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ResourceQueryFailure(resource_type, f"unexpected AWS CLI output: {e}") from e

    def list_ecs_clusters(self):
        data = self._query("ECS clusters", ["ecs", "list-clusters"])
        return [RemoteResource(name=arn.rsplit("/", 1)[-1], ref=arn) for arn in data.get("clusterArns", [])]

    def list_iam_roles(self, service_principal=None):
        data = self._query("IAM roles", ["iam", "list-roles"])
        roles = []
        for role in data.get("Roles", []):
            if service_principal and service_principal not in json.dumps(role.get("AssumeRolePolicyDocument", {})):
                continue
            roles.append(RemoteResource(name=role["RoleName"], ref=role["Arn"]))
        return roles

    def list_beanstalk_applications(self):
        data = self._query("Elastic Beanstalk applications", ["elasticbeanstalk", "describe-applications"])
        return [
            RemoteResource(name=app["ApplicationName"], ref=app.get("ApplicationArn", app["ApplicationName"]))
            for app in data.get("Applications", [])
        ]
