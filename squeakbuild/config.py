"""Configuration loading and environment variable parsing for squeakbuild."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from squeakbuild.constants import CONFIG_SECTION, DEFAULT_CONFIG_PATH
from squeakbuild.exceptions import ConfigurationError
from squeakbuild.models import BuildRequest, VmDescriptor
from squeakbuild.registry import VmRegistry
from squeakbuild.utils import get_env, get_env_bool, log, parse_int_env


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    if config_path is not None:
        return config_path
    override = (get_env("VM_CONFIG") or "").strip()
    if override:
        return Path(override)
    return DEFAULT_CONFIG_PATH


def _code_block(name: str, key: str, raw: Any) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise ConfigurationError(f"VM '{name}': '{key}' must be a string")
    return raw


def _descriptor_from_entry(name: str, entry: Any) -> VmDescriptor:
    if entry is None:
        entry = {}
    if not isinstance(entry, dict):
        raise ConfigurationError(f"VM '{name}' must be a mapping")
    executable = entry.get("executable", entry.get("executable_path"))
    if not executable:
        raise ConfigurationError(f"VM '{name}' is missing 'executable'")
    default_image = entry.get("default_image", entry.get("default_image_name")) or ""
    return VmDescriptor(
        name=str(name),
        executable_path=str(executable),
        default_image_name=str(default_image).strip(),
        before_code=_code_block(name, "before", entry.get("before")),
        after_code=_code_block(name, "after", entry.get("after")),
    )


def load_vm_registry(config_path: Optional[Path] = None) -> VmRegistry:
    """Build a registry from the ``virtual_machines`` section of a YAML file."""
    config_path = resolve_config_path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"VM config missing: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"VM config {config_path} contains invalid YAML: {exc}")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"VM config {config_path} must be a YAML mapping")
    section = data.get(CONFIG_SECTION) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{CONFIG_SECTION}' in {config_path} must be a mapping")
    descriptors: List[VmDescriptor] = [
        _descriptor_from_entry(name, entry) for name, entry in section.items()
    ]
    if not descriptors:
        log("WARN", f"No virtual machines configured in {config_path}")
    return VmRegistry(descriptors)


def _read_script() -> str:
    inline = get_env("SCRIPT")
    script_file = (get_env("SCRIPT_FILE") or "").strip() or None
    if inline is not None and script_file:
        raise ConfigurationError("Set only one of SCRIPT or SCRIPT_FILE, not both.")
    if script_file:
        return read_script_file(Path(script_file))
    return inline or ""


def read_script_file(path: Path) -> str:
    if not path.is_file():
        raise ConfigurationError(f"SCRIPT_FILE not found: {path}")
    try:
        return path.read_text(encoding="utf-8").rstrip("\n")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read SCRIPT_FILE {path}: {exc}")


def parse_timeout(raw_seconds: int) -> Optional[float]:
    return float(raw_seconds) if raw_seconds > 0 else None


def parse_env() -> BuildRequest:
    """Assemble a build request from environment variables."""
    timeout = parse_timeout(parse_int_env("BUILD_TIMEOUT", "0", min_val=0))
    return BuildRequest(
        vm_name=(get_env("VM_NAME") or "").strip(),
        start_image_name=(get_env("START_IMAGE") or "").strip(),
        result_image_name=(get_env("RESULT_IMAGE") or "").strip(),
        script_body=_read_script(),
        parameters=get_env("VM_PARAMETERS") or "",
        timeout=timeout,
        check_exit_code=not get_env_bool("ALLOW_NONZERO_EXIT", False),
    )


def resolve_workspace(raw: Optional[str] = None) -> Path:
    """Return the workspace root from *raw*, ``WORKSPACE`` or the current directory."""
    candidate = (raw if raw is not None else get_env("WORKSPACE")) or ""
    candidate = candidate.strip()
    workspace = Path(candidate) if candidate else Path.cwd()
    if not workspace.is_dir():
        raise ConfigurationError(f"Workspace is not a directory: {workspace}")
    return workspace.resolve()


def describe_request(request: BuildRequest) -> Dict[str, Any]:
    return {
        "vm_name": request.vm_name,
        "start_image_name": request.start_image_name or "<vm default>",
        "result_image_name": request.result_image_name,
        "parameters": request.trimmed_parameters,
        "timeout": request.timeout if request.timeout is not None else "none",
        "check_exit_code": request.check_exit_code,
        "script_lines": len(request.script_body.splitlines()),
    }
