"""
Runs external command line tools (CDK, git, node, docker).

This is the only place the tool starts child processes. Output is streamed
line by line to a logger while the process runs; a user interrupt or a
timeout kills the child's whole process group.
"""

import logging
import os
import signal
import subprocess
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from deploy_orchestration.exceptions import MissingCredentials
from deploy_orchestration.session import CredentialContext

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of an external command."""
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class CommandLineWrapper(ABC):
    """Interface for running external tools."""

    @abstractmethod
    def run(self, command: Sequence[str], working_directory: Optional[Union[str, Path]] = None,
            environment: Optional[Dict[str, str]] = None, need_credentials: bool = False,
            stream_output: bool = True) -> CommandResult:
        """Run a command and return its result.

        With ``stream_output`` each output line goes to the output logger as it
        arrives; otherwise output is only kept in the result.
        """

    def try_run_with_result(self, command: Sequence[str],
                            working_directory: Optional[Union[str, Path]] = None) -> CommandResult:
        """Run a check command; a missing executable is a failed result, not an error."""
        try:
            return self.run(command, working_directory=working_directory, stream_output=False)
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            logger.debug("Check %s failed to start: %s", " ".join(command), e)
            return CommandResult(exit_code=127, stderr=str(e))


class SubprocessCommandLineWrapper(CommandLineWrapper):
    """Runs commands with subprocess.Popen."""

    def __init__(self, output_logger: Optional[logging.Logger] = None,
                 credentials: Optional[CredentialContext] = None,
                 region: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Args:
            output_logger: Logger receiving each output line of the child
            credentials: Credential context exposed to commands needing credentials
            region: AWS region exported alongside the credentials
            timeout: Seconds before a command is killed (None waits forever)
        """
        self.output_logger = output_logger or logging.getLogger("deploy_orchestration.cdk.output")
        self.credentials = credentials
        self.region = region
        self.timeout = timeout

    def run(self, command: Sequence[str], working_directory: Optional[Union[str, Path]] = None,
            environment: Optional[Dict[str, str]] = None, need_credentials: bool = False,
            stream_output: bool = True) -> CommandResult:
        env = os.environ.copy()
        if need_credentials:
            if self.credentials is None:
                raise MissingCredentials(
                    f"AWS credentials are required to run '{' '.join(command)}' but none were resolved."
                )
            env.update(self.credentials.to_environment(self.region))
        if environment:
            env.update(environment)

        logger.debug("Executing: %s (cwd=%s)", " ".join(command), working_directory)
        process = subprocess.Popen(
            list(command),
            cwd=str(working_directory) if working_directory else None,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            start_new_session=True,
        )

        lines: List[str] = []
        timer = None
        if self.timeout is not None:
            timer = threading.Timer(self.timeout, self._kill_process_tree, args=(process,))
            timer.daemon = True
            timer.start()

        try:
            for line in process.stdout:
                line = line.rstrip("\n")
                lines.append(line)
                if stream_output:
                    self.output_logger.info(line)
                else:
                    logger.debug("%s: %s", command[0], line)
            exit_code = process.wait()
        except KeyboardInterrupt:
            logger.warning("Interrupted, terminating %s", command[0])
            self._kill_process_tree(process)
            process.wait()
            raise
        finally:
            if timer is not None:
                timer.cancel()
            if process.stdout:
                process.stdout.close()

        logger.debug("%s exited with %s", command[0], exit_code)
        return CommandResult(exit_code=exit_code, stdout="\n".join(lines))

    @staticmethod
    def _kill_process_tree(process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
