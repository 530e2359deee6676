"""
Host capability detection (Node.js for the CDK CLI, Docker for container builds).
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Optional

if TYPE_CHECKING:
    from deploy_orchestration.cdk.command_line import CommandLineWrapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemCapabilities:
    """Capabilities of the machine running the tool."""
    node_js_installed: bool = False
    docker_installed: bool = False
    docker_container_type: Optional[str] = None

    def as_flags(self) -> FrozenSet[str]:
        """Capability names used by ``capability-present`` rules."""
        flags = set()
        if self.node_js_installed:
            flags.add("nodejs")
        if self.docker_installed:
            flags.add("docker")
            if self.docker_container_type:
                flags.add(f"docker-{self.docker_container_type.lower()}")
        return frozenset(flags)


class SystemCapabilityEvaluator:
    """Checks the host through the command line wrapper."""

    def __init__(self, command_line: "CommandLineWrapper"):
        self.command_line = command_line

    def evaluate(self) -> SystemCapabilities:
        node = self.command_line.try_run_with_result(["node", "--version"])
        docker = self.command_line.try_run_with_result(["docker", "info", "--format", "{{.OSType}}"])

        container_type = None
        if docker.success and docker.stdout.strip():
            container_type = docker.stdout.strip().splitlines()[-1].strip()

        capabilities = SystemCapabilities(
            node_js_installed=node.success,
            docker_installed=docker.success,
            docker_container_type=container_type,
        )
        logger.debug("System capabilities: %s", capabilities)
        return capabilities
