"""Registry of configured Squeak/Pharo virtual machines."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from squeakbuild.constants import CHANGES_SUFFIX, IMAGE_SUFFIX
from squeakbuild.exceptions import ConfigurationError
from squeakbuild.models import VmDescriptor

PathLike = Union[str, Path]


def check_name(name: Optional[str]) -> Optional[str]:
    """Return an error message when the VM name is missing."""
    if name is None or not name.strip():
        return "VM name is required"
    return None


def check_executable(path: Optional[PathLike]) -> Optional[str]:
    """Return an error message unless *path* points to an existing regular file."""
    if path is None or not str(path).strip():
        return "Executable location is required"
    candidate = Path(path)
    if not candidate.exists():
        return f"Executable {candidate} does not exist"
    if not candidate.is_file():
        return f"Executable {candidate} is not a file"
    return None


def check_default_image(name: Optional[str], base_dir: Optional[PathLike] = None) -> Optional[str]:
    """Return an error message unless ``<name>.image`` and ``<name>.changes`` exist."""
    if name is None or not name.strip():
        return "Image name is required"
    root = Path(base_dir) if base_dir is not None else Path(".")
    image = root / f"{name}{IMAGE_SUFFIX}"
    changes = root / f"{name}{CHANGES_SUFFIX}"
    if not image.is_file():
        return f"No such file: {image}"
    if not changes.is_file():
        return f"No such file: {changes}"
    return None


class VmRegistry:
    """Named collection of VM descriptors, looked up by exact name."""

    def __init__(self, descriptors: Iterable[VmDescriptor] = ()) -> None:
        self._vms: Dict[str, VmDescriptor] = {}
        for vm in descriptors:
            if vm.name in self._vms:
                raise ConfigurationError(f"Duplicate VM name '{vm.name}'")
            self._vms[vm.name] = vm

    def __len__(self) -> int:
        return len(self._vms)

    def __iter__(self) -> Iterator[VmDescriptor]:
        return iter(self._vms.values())

    def __contains__(self, name: object) -> bool:
        return name in self._vms

    def names(self) -> List[str]:
        return sorted(self._vms)

    def lookup(self, name: Optional[str]) -> Optional[VmDescriptor]:
        if name is None:
            return None
        return self._vms.get(name)

    def require(self, name: Optional[str]) -> VmDescriptor:
        vm = self.lookup(name)
        if vm is None:
            available = ", ".join(self.names()) or "<none>"
            raise ConfigurationError(f"Unknown VM '{name}'. Available VMs: {available}")
        return vm

    def validate(self, base_dir: Optional[PathLike] = None) -> List[str]:
        """Check every descriptor and return the problems found, prefixed by VM name."""
        errors: List[str] = []
        for vm in self:
            for problem in (
                check_name(vm.name),
                check_executable(vm.executable_path),
                check_default_image(vm.default_image_name, base_dir),
            ):
                if problem:
                    errors.append(f"{vm.name or '<unnamed>'}: {problem}")
        return errors
