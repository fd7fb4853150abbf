"""Workspace file operations for image builds."""

from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from squeakbuild.constants import (
    CHANGES_SUFFIX,
    IMAGE_SUFFIX,
    SCRIPT_PREFIX,
    SCRIPT_SUFFIX,
    STAGING_DIR_PREFIX,
    TEMP_IMAGE_STEM,
)
from squeakbuild.exceptions import StagingError
from squeakbuild.utils import log


@dataclass
class StagingArea:
    """Per-build directory holding the image copies and the generated script."""

    directory: Path

    @property
    def image(self) -> Path:
        return self.directory / f"{TEMP_IMAGE_STEM}{IMAGE_SUFFIX}"

    @property
    def changes(self) -> Path:
        return self.directory / f"{TEMP_IMAGE_STEM}{CHANGES_SUFFIX}"

    def create_script(self) -> Path:
        """Allocate a uniquely named ``.st`` file inside the staging directory."""
        try:
            fd, name = tempfile.mkstemp(prefix=SCRIPT_PREFIX, suffix=SCRIPT_SUFFIX, dir=self.directory)
        except OSError as exc:
            raise StagingError(f"Cannot create script file in {self.directory}: {exc}")
        os.close(fd)
        return Path(name)


class Workspace:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).resolve()

    def image_path(self, name: str) -> Path:
        return self.root / f"{name}{IMAGE_SUFFIX}"

    def changes_path(self, name: str) -> Path:
        return self.root / f"{name}{CHANGES_SUFFIX}"

    def has_image(self, name: str) -> bool:
        return self.image_path(name).is_file() and self.changes_path(name).is_file()

    @contextmanager
    def staging(self) -> Iterator[StagingArea]:
        """Acquire a unique staging directory; it is removed on every exit path."""
        try:
            directory = Path(tempfile.mkdtemp(prefix=STAGING_DIR_PREFIX, dir=self.root))
        except OSError as exc:
            raise StagingError(f"Cannot create staging directory in {self.root}: {exc}")
        log("DEBUG", f"Staging directory: {directory}")
        try:
            yield StagingArea(directory)
        finally:
            self.remove_tree(directory)

    def copy(self, source: Path, destination: Path) -> None:
        if not source.is_file():
            raise StagingError(f"No such file: {source}")
        try:
            shutil.copy2(source, destination)
        except OSError as exc:
            raise StagingError(f"Failed to copy {source} to {destination}: {exc}")

    def rename(self, source: Path, destination: Path) -> None:
        """Move *source* over *destination*, replacing any existing file."""
        os.replace(source, destination)

    def remove(self, path: Path) -> None:
        """Best-effort delete; failures are logged and ignored."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log("WARN", f"Failed to remove {path}: {exc}")

    def remove_tree(self, directory: Path) -> None:
        if not directory.exists():
            return
        try:
            shutil.rmtree(directory)
        except OSError:
            log("WARN", f"Failed to remove {directory}")
