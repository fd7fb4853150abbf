"""Data models for squeakbuild."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VmDescriptor:
    """A registered Squeak/Pharo virtual machine installation."""

    name: str
    executable_path: str
    default_image_name: str
    before_code: str = ""
    after_code: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} (Squeak/Pharo VM)"


@dataclass(frozen=True)
class BuildRequest:
    vm_name: str
    result_image_name: str
    script_body: str
    start_image_name: str = ""
    parameters: str = ""
    timeout: Optional[float] = None  # seconds; None waits forever
    check_exit_code: bool = True

    def effective_start_image(self, vm: VmDescriptor) -> str:
        """Return the explicit start image, or the VM default when blank."""
        explicit = (self.start_image_name or "").strip()
        if explicit:
            return explicit
        return vm.default_image_name

    def uses_default_image(self, vm: VmDescriptor) -> bool:
        return self.effective_start_image(vm) == vm.default_image_name

    @property
    def trimmed_parameters(self) -> str:
        return (self.parameters or "").strip()
