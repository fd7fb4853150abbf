"""Global constants and path configuration for squeakbuild."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("/config/vms.yaml")
CONFIG_SECTION = "virtual_machines"

IMAGE_SUFFIX = ".image"
CHANGES_SUFFIX = ".changes"

# Staged copies keep the historical names; they live in a per-build directory.
TEMP_IMAGE_STEM = "temp"
STAGING_DIR_PREFIX = ".squeakbuild-"
SCRIPT_PREFIX = "builder"
SCRIPT_SUFFIX = ".st"
SCRIPT_ENCODING = "utf-8"

TRUTHY = {"1", "true", "yes", "on"}

# Seconds to wait for the VM after SIGTERM before killing it.
TERMINATE_GRACE = 5.0

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in {"1", "true", "yes", "on"}
