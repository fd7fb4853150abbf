"""CLI entry points for squeakbuild."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

from squeakbuild.config import (
    describe_request,
    load_vm_registry,
    parse_env,
    parse_timeout,
    read_script_file,
    resolve_config_path,
    resolve_workspace,
)
from squeakbuild.exceptions import BuildError, ConfigurationError
from squeakbuild.executor import BuildExecutor
from squeakbuild.models import BuildRequest
from squeakbuild.registry import VmRegistry
from squeakbuild.utils import format_command, log


def list_vms(registry: VmRegistry) -> None:
    """Print the configured virtual machines."""
    if not len(registry):
        log("WARN", "No virtual machines configured")
        return
    max_key = max(len(name) for name in registry.names())
    for name in registry.names():
        vm = registry.require(name)
        default = vm.default_image_name or "-"
        print(f"  {name:<{max_key}}  {vm.executable_path}  (default image={default})")


def check_config(registry: VmRegistry, base_dir: Optional[Path] = None) -> int:
    errors = registry.validate(base_dir)
    if not errors:
        log("SUCCESS", f"{len(registry)} virtual machine(s) OK")
        return 0
    for error in errors:
        log("ERROR", error)
    return 1


def show_config(request: BuildRequest, workspace: Path) -> None:
    """Print the resolved build request."""
    print(f"  workspace: {workspace}")
    for key, value in describe_request(request).items():
        print(f"  {key}: {value}")


def apply_overrides(request: BuildRequest, args: argparse.Namespace) -> BuildRequest:
    """Replace request fields with the command-line flags that were given."""
    changes = {}
    if args.vm is not None:
        changes["vm_name"] = args.vm.strip()
    if args.start_image is not None:
        changes["start_image_name"] = args.start_image.strip()
    if args.result_image is not None:
        changes["result_image_name"] = args.result_image.strip()
    if args.script is not None and args.script_file is not None:
        raise ConfigurationError("Use only one of --script or --script-file, not both.")
    if args.script is not None:
        changes["script_body"] = args.script
    if args.script_file is not None:
        changes["script_body"] = read_script_file(Path(args.script_file))
    if args.parameters is not None:
        changes["parameters"] = args.parameters
    if args.timeout is not None:
        if args.timeout < 0:
            raise ConfigurationError(f"--timeout must be >= 0 (got {args.timeout})")
        changes["timeout"] = parse_timeout(args.timeout)
    if args.allow_nonzero_exit:
        changes["check_exit_code"] = False
    return dataclasses.replace(request, **changes)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a script in a Squeak/Pharo image and save the result")
    parser.add_argument("--config", metavar="PATH", help="VM configuration file (default: $VM_CONFIG or /config/vms.yaml)")
    parser.add_argument("--workspace", metavar="DIR", help="Build workspace (default: $WORKSPACE or current directory)")
    parser.add_argument("--vm", metavar="NAME", help="Name of the configured VM to run")
    parser.add_argument("--start-image", metavar="NAME", help="Base name of the image to start from")
    parser.add_argument("--result-image", metavar="NAME", help="Base name of the image to save")
    parser.add_argument("--script", metavar="CODE", help="Code to execute inside the image")
    parser.add_argument("--script-file", metavar="PATH", help="File with the code to execute")
    parser.add_argument("--parameters", metavar="FLAGS", help="Extra VM flags, passed as one argument")
    parser.add_argument("--timeout", type=int, metavar="SECONDS", help="Kill the VM after this many seconds (0 = never)")
    parser.add_argument(
        "--allow-nonzero-exit",
        action="store_true",
        help="Save the resulting image even when the VM exits with a non-zero status",
    )
    parser.add_argument("--list-vms", action="store_true", help="List configured VMs and exit")
    parser.add_argument("--check-config", action="store_true", help="Validate configured VMs and exit")
    parser.add_argument("--show-config", action="store_true", help="Show the resolved build request and exit")
    parser.add_argument("--dry-run", action="store_true", help="Print the VM command line and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_path = Path(args.config) if args.config else None

    try:
        registry = load_vm_registry(resolve_config_path(config_path))
        if args.list_vms:
            list_vms(registry)
            return 0
        workspace = resolve_workspace(args.workspace)
        if args.check_config:
            return check_config(registry, workspace)
        request = apply_overrides(parse_env(), args)
    except ConfigurationError as exc:
        log("ERROR", str(exc))
        return 1

    if args.show_config:
        show_config(request, workspace)
        return 0

    if not request.vm_name:
        log("ERROR", "No VM selected (set VM_NAME or --vm)")
        return 1

    executor = BuildExecutor(registry)
    if args.dry_run:
        try:
            cmd = executor.dry_run(request, workspace)
        except BuildError as exc:
            log("ERROR", str(exc))
            return 1
        log("INFO", f"Workspace: {workspace}")
        print(format_command(cmd))
        log("INFO", "=== Dry-run complete (no VM started) ===")
        return 0

    vm = registry.lookup(request.vm_name)
    if vm is not None:
        start = request.effective_start_image(vm)
        if request.uses_default_image(vm):
            start += " (VM default)"
        log("INFO", f"VM: {vm.display_name} | Start image: {start}")
    log("INFO", f"Resulting image: {request.result_image_name or '<unset>'} | Workspace: {workspace}")
    try:
        ok = executor.execute(request, workspace, sys.stdout)
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        import traceback

        traceback.print_exc()
        return 1
    if ok:
        log("SUCCESS", f"Saved {request.result_image_name}.image")
        return 0
    return 1
