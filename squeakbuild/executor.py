"""Image build execution: stage, run the VM, commit the resulting image."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from squeakbuild.constants import SCRIPT_ENCODING, SCRIPT_PREFIX, SCRIPT_SUFFIX, STAGING_DIR_PREFIX
from squeakbuild.exceptions import BuildError, CommitError, ConfigurationError, LaunchError, StagingError
from squeakbuild.launcher import ProcessLauncher
from squeakbuild.models import BuildRequest, VmDescriptor
from squeakbuild.registry import VmRegistry
from squeakbuild.utils import log, write_line
from squeakbuild.workspace import StagingArea, Workspace


def assemble_script(vm: VmDescriptor, script_body: str) -> str:
    """Wrap *script_body* between the VM's before and after blocks, one per line."""
    blocks = [vm.before_code or "", script_body or "", vm.after_code or ""]
    return "".join(block + "\n" for block in blocks)


def build_arguments(
    vm: VmDescriptor,
    parameters: Optional[str],
    image_path: Union[str, Path],
    script_path: Union[str, Path],
) -> List[str]:
    """Return ``[vm, <parameters>, image, script]``; parameters stay a single token."""
    cmd = [vm.executable_path]
    extra = (parameters or "").strip()
    if extra:
        cmd.append(extra)
    cmd.append(str(image_path))
    cmd.append(str(script_path))
    return cmd


class BuildExecutor:
    """Runs one build request at a time against a workspace.

    The start image is never handed to the VM: it is copied into a unique
    staging directory and only the copy is mutated. On success the copy is
    renamed to the resulting image name; on any failure the staging directory
    is discarded and no resulting image is written.
    """

    def __init__(self, registry: VmRegistry, launcher: Optional[ProcessLauncher] = None) -> None:
        self.registry = registry
        self.launcher = launcher or ProcessLauncher()

    def execute(self, request: BuildRequest, workspace_root: Union[str, Path], log_sink) -> bool:
        workspace = Workspace(workspace_root)
        write_line(log_sink, "Running Pharo/Squeak image")
        try:
            vm = self.registry.require(request.vm_name)
            start_image = request.effective_start_image(vm)
            self._check_request(request, start_image, workspace)
            with workspace.staging() as staging:
                self._build(request, vm, start_image, workspace, staging, log_sink)
        except BuildError as exc:
            write_line(log_sink, f"ERROR: {exc}")
            log("ERROR", str(exc))
            write_line(log_sink, "Pharo/Squeak image build failed")
            return False
        write_line(log_sink, "Pharo/Squeak image returned")
        return True

    def dry_run(self, request: BuildRequest, workspace_root: Union[str, Path]) -> List[str]:
        """Return the command line a build would run, without touching the workspace."""
        vm = self.registry.require(request.vm_name)
        staging_dir = Workspace(workspace_root).root / f"{STAGING_DIR_PREFIX}XXXXXXXX"
        placeholder = StagingArea(staging_dir)
        script = staging_dir / f"{SCRIPT_PREFIX}XXXXXXXX{SCRIPT_SUFFIX}"
        return build_arguments(vm, request.parameters, placeholder.image, script)

    def _check_request(self, request: BuildRequest, start_image: str, workspace: Workspace) -> None:
        result = (request.result_image_name or "").strip()
        if not result:
            raise ConfigurationError("Resulting image name is required")
        if not start_image:
            raise ConfigurationError(
                f"No start image given and VM '{request.vm_name}' has no default image"
            )
        if result == start_image:
            raise ConfigurationError(
                f"Resulting image '{result}' must differ from the start image"
            )
        if not workspace.has_image(start_image):
            raise StagingError(
                f"Start image {start_image}.image/.changes not found in {workspace.root}"
            )

    def _build(
        self,
        request: BuildRequest,
        vm: VmDescriptor,
        start_image: str,
        workspace: Workspace,
        staging: StagingArea,
        log_sink,
    ) -> None:
        workspace.copy(workspace.image_path(start_image), staging.image)
        workspace.copy(workspace.changes_path(start_image), staging.changes)

        script = staging.create_script()
        try:
            script.write_text(assemble_script(vm, request.script_body), encoding=SCRIPT_ENCODING)
        except OSError as exc:
            raise StagingError(f"Cannot write script {script}: {exc}")

        cmd = build_arguments(vm, request.parameters, staging.image, script)
        returncode = self.launcher.run(cmd, workspace.root, log_sink, timeout=request.timeout)
        write_line(log_sink, f"VM exited with status {returncode}")
        if returncode != 0:
            if request.check_exit_code:
                raise LaunchError(f"VM exited with status {returncode}; resulting image not saved")
            write_line(log_sink, "Ignoring non-zero exit status")

        self._commit(workspace, staging, request.result_image_name.strip(), log_sink)

    def _commit(self, workspace: Workspace, staging: StagingArea, result: str, log_sink) -> None:
        target_image = workspace.image_path(result)
        target_changes = workspace.changes_path(result)
        try:
            workspace.rename(staging.image, target_image)
        except OSError as exc:
            raise CommitError(f"Failed to rename image to {target_image.name}: {exc}")
        try:
            workspace.rename(staging.changes, target_changes)
        except OSError as exc:
            workspace.remove(target_image)
            raise CommitError(f"Failed to rename changes to {target_changes.name}: {exc}")
        write_line(log_sink, f"Renamed image to {target_image.name}")
