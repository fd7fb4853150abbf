"""Shared test fixtures for squeakbuild."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from squeakbuild.models import BuildRequest, VmDescriptor
from squeakbuild.registry import VmRegistry

BASE_IMAGE_BYTES = b"\x00squeak-image\x01"
BASE_CHANGES_BYTES = b"'From Pharo' changes log\n"


@pytest.fixture
def vm_executable(tmp_path) -> Path:
    exe = tmp_path / "bin" / "pharo"
    exe.parent.mkdir()
    exe.write_text("#!/bin/sh\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture
def vm_descriptor(vm_executable) -> VmDescriptor:
    return VmDescriptor(
        name="pharo",
        executable_path=str(vm_executable),
        default_image_name="base",
    )


@pytest.fixture
def registry(vm_descriptor) -> VmRegistry:
    return VmRegistry([vm_descriptor])


@pytest.fixture
def workspace(tmp_path) -> Path:
    """A workspace holding the ``base.image`` / ``base.changes`` pair."""
    root = tmp_path / "workspace"
    root.mkdir()
    (root / "base.image").write_bytes(BASE_IMAGE_BYTES)
    (root / "base.changes").write_bytes(BASE_CHANGES_BYTES)
    return root


@pytest.fixture
def build_request() -> BuildRequest:
    return BuildRequest(
        vm_name="pharo",
        result_image_name="out",
        script_body="Transcript showCr: 'hi'.",
    )


@pytest.fixture
def fake_launcher():
    """Launcher stand-in that mutates the staged image like a real VM would."""

    def _run(cmd, cwd, sink, timeout=None):
        image = Path(cmd[-2])
        image.write_bytes(image.read_bytes() + b"saved")
        sink.write("hi\n")
        return fake.returncode

    fake = MagicMock()
    fake.returncode = 0
    fake.run.side_effect = _run
    return fake


@pytest.fixture
def clean_env(monkeypatch):
    """Clear all environment variables that parse_env() reads."""
    for key in (
        "VM_CONFIG",
        "VM_NAME",
        "START_IMAGE",
        "RESULT_IMAGE",
        "SCRIPT",
        "SCRIPT_FILE",
        "VM_PARAMETERS",
        "WORKSPACE",
        "BUILD_TIMEOUT",
        "ALLOW_NONZERO_EXIT",
    ):
        monkeypatch.delenv(key, raising=False)
