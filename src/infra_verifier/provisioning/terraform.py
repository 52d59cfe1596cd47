"""
Terraform Provisioning Driver Module.

This module wraps the Terraform CLI: init, plan, apply, output and destroy.
Every operation runs the real binary and talks to the real backend. Nothing
is retried here; retry policy belongs to the caller.
"""

import glob
import json
import os
import re
import shutil
import subprocess
import tempfile
import uuid
from types import MappingProxyType
from typing import Dict, List, Optional

from ...errors import ConfigurationError, ProvisioningError
from ...utils import parse_plan_changes, parse_terraform_output, setup_logging
from ..types import (
    EnvironmentConfig,
    EnvironmentHandle,
    LifecycleState,
    OutputSet,
    PlanResult,
    ResourceChange,
    VariableValue,
)

logger = setup_logging()

PLAN_FILE = "verifier.tfplan"

# Exit codes of `terraform plan -detailed-exitcode`
PLAN_NO_CHANGES = 0
PLAN_HAS_CHANGES = 2


class TerraformDriver:
    """
    Drives one Terraform configuration through its lifecycle.

    Each handle gets a private copy of the configuration directory so that
    parallel scenarios never share local state or lock files.
    """

    def __init__(
        self,
        terraform_binary: str = "terraform",
        command_timeout_seconds: int = 3600,
        unique_id_variable: Optional[str] = None,
    ) -> None:
        self.terraform_binary = terraform_binary
        self.command_timeout_seconds = command_timeout_seconds
        self.unique_id_variable = unique_id_variable

    def init(self, env_config: EnvironmentConfig) -> EnvironmentHandle:
        """
        Validates the configuration, prepares a working copy and runs `terraform init`.

        Args:
            env_config: Terraform directory, variables and environment name

        Returns:
            Handle in the INITIALIZED state

        Raises:
            ConfigurationError: If the directory is unreachable or the variable set is empty
            ProvisioningError: If `terraform init` fails
        """
        source_dir = os.path.abspath(env_config.terraform_dir)
        if not os.path.isdir(source_dir) or not os.access(source_dir, os.R_OK):
            raise ConfigurationError(f"Terraform directory is unreachable: {source_dir}")
        if not glob.glob(os.path.join(source_dir, "*.tf")) and not glob.glob(
            os.path.join(source_dir, "*.tf.json")
        ):
            raise ConfigurationError(f"No Terraform configuration files in {source_dir}")
        if not env_config.variables:
            raise ConfigurationError(f"Variable set for {env_config.name} is empty")

        variables: Dict[str, VariableValue] = dict(env_config.variables)
        if self.unique_id_variable and self.unique_id_variable not in variables:
            variables[self.unique_id_variable] = uuid.uuid4().hex[:6]

        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", env_config.name)
        working_root = tempfile.mkdtemp(prefix=f"infra-verifier-{safe_name}-")
        working_dir = os.path.join(working_root, os.path.basename(source_dir))
        try:
            shutil.copytree(
                source_dir,
                working_dir,
                ignore=shutil.ignore_patterns(".terraform", "terraform.tfstate*", "*.tfplan"),
            )
        except OSError as e:
            shutil.rmtree(working_root, ignore_errors=True)
            raise ConfigurationError(f"Cannot copy {source_dir} to a working directory: {e}")

        handle = EnvironmentHandle(
            name=env_config.name,
            source_dir=source_dir,
            working_dir=working_dir,
            variables=MappingProxyType(variables),
        )
        logger.info(f"[{handle.name}] Initialising Terraform in {working_dir}")
        try:
            self._run(handle, ["init", "-input=false", "-no-color"])
        except ProvisioningError:
            _remove_working_copy(handle)
            raise
        handle.state = LifecycleState.INITIALIZED
        return handle

    def plan(self, handle: EnvironmentHandle) -> PlanResult:
        """
        Computes the changes Terraform would make, without touching real resources.

        Args:
            handle: Initialised environment handle

        Returns:
            PlanResult with the number of changed resources and their addresses

        Raises:
            ProvisioningError: If the plan fails
        """
        self._require_live(handle, "plan")
        plan_path = os.path.join(handle.working_dir, PLAN_FILE)
        args = ["plan", "-input=false", "-no-color", "-detailed-exitcode", f"-out={plan_path}"]
        result = self._run(handle, args + self._var_args(handle), allowed_exit_codes=(0, 2))

        changes: List[ResourceChange] = []
        if result.returncode == PLAN_HAS_CHANGES:
            shown = self._run(handle, ["show", "-json", "-no-color", plan_path])
            for change in parse_plan_changes(shown.stdout, logger):
                changes.append(ResourceChange(change["address"], tuple(change["actions"])))

        if handle.state in (LifecycleState.UNINITIALIZED, LifecycleState.INITIALIZED):
            handle.state = LifecycleState.PLANNED
        plan_result = PlanResult(
            change_count=len(changes),
            exit_code=result.returncode,
            changes=tuple(changes),
        )
        logger.info(
            f"[{handle.name}] Plan finished with exit code {plan_result.exit_code}, "
            f"{plan_result.change_count} resource change(s)"
        )
        return plan_result

    def apply(self, handle: EnvironmentHandle) -> OutputSet:
        """
        Provisions the resources and reads the outputs.

        Calling apply on an applied handle returns the cached outputs. A failed
        apply leaves any partial resources in place and marks the handle
        applied, so the caller's teardown still destroys them.

        Args:
            handle: Initialised environment handle

        Returns:
            OutputSet read after the apply

        Raises:
            ProvisioningError: If apply or output retrieval fails
        """
        self._require_live(handle, "apply")
        if handle.state == LifecycleState.APPLIED and handle.outputs is not None:
            logger.info(f"[{handle.name}] Already applied; returning existing outputs")
            return handle.outputs

        logger.info(f"[{handle.name}] Applying Terraform configuration")
        try:
            self._run(
                handle,
                ["apply", "-input=false", "-no-color", "-auto-approve"] + self._var_args(handle),
            )
        finally:
            handle.state = LifecycleState.APPLIED
        handle.outputs = self.output(handle)
        return handle.outputs

    def output(self, handle: EnvironmentHandle) -> OutputSet:
        """Reads all outputs of the environment as an OutputSet."""
        self._require_live(handle, "output")
        result = self._run(handle, ["output", "-json", "-no-color"])
        return OutputSet(parse_terraform_output(result.stdout, logger))

    def destroy(self, handle: EnvironmentHandle) -> None:
        """
        Tears down every resource tied to the handle.

        Safe to call repeatedly: a destroyed handle is logged and left alone.

        Raises:
            ProvisioningError: If `terraform destroy` fails
        """
        if handle.state == LifecycleState.DESTROYED:
            logger.info(f"[{handle.name}] Already destroyed; nothing to do")
            return
        if handle.state == LifecycleState.UNINITIALIZED:
            handle.state = LifecycleState.DESTROYED
            _remove_working_copy(handle)
            return

        logger.info(f"[{handle.name}] Destroying Terraform resources")
        self._run(
            handle,
            ["destroy", "-input=false", "-no-color", "-auto-approve"] + self._var_args(handle),
        )
        handle.state = LifecycleState.DESTROYED
        _remove_working_copy(handle)
        logger.info(f"[{handle.name}] Destroy complete")

    def _var_args(self, handle: EnvironmentHandle) -> List[str]:
        args = []
        for name, value in handle.variables.items():
            if isinstance(value, str):
                rendered = value
            else:
                rendered = json.dumps(value)
            args.append(f"-var={name}={rendered}")
        return args

    def _require_live(self, handle: EnvironmentHandle, operation: str) -> None:
        if handle.state in (LifecycleState.UNINITIALIZED, LifecycleState.DESTROYED):
            raise ProvisioningError(
                f"Cannot {operation} environment {handle.name} in state {handle.state.value}"
            )

    def _run(
        self,
        handle: EnvironmentHandle,
        args: List[str],
        allowed_exit_codes: tuple = (0,),
    ) -> subprocess.CompletedProcess:
        command = [self.terraform_binary] + args
        env = os.environ.copy()
        env["TF_IN_AUTOMATION"] = "1"
        env["TF_INPUT"] = "0"
        logger.debug(f"[{handle.name}] Running: {' '.join(command[:2])}")
        try:
            result = subprocess.run(
                command,
                cwd=handle.working_dir,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.command_timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ProvisioningError(
                f"terraform {args[0]} timed out after {self.command_timeout_seconds}s",
                command=command,
            ) from e
        except OSError as e:
            raise ProvisioningError(
                f"Could not run {self.terraform_binary}: {e}", command=command
            ) from e

        if result.returncode not in allowed_exit_codes:
            stderr = (result.stderr or result.stdout or "").strip()
            logger.error(
                f"[{handle.name}] terraform {args[0]} failed with exit code {result.returncode}"
            )
            raise ProvisioningError(
                f"terraform {args[0]} failed with exit code {result.returncode}: {stderr}",
                command=command,
                exit_code=result.returncode,
                stderr=stderr,
            )
        return result


def _remove_working_copy(handle: EnvironmentHandle) -> None:
    working_root = os.path.dirname(handle.working_dir)
    if os.path.basename(working_root).startswith("infra-verifier-"):
        shutil.rmtree(working_root, ignore_errors=True)
