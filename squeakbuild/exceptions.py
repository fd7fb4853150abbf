"""Custom exceptions for squeakbuild."""


class BuildError(RuntimeError):
    """Raised on unrecoverable configuration or build errors."""


class ConfigurationError(BuildError):
    """Unknown VM, invalid settings or missing VM files."""


class StagingError(BuildError):
    """Source image pair missing or could not be copied into the staging area."""


class LaunchError(BuildError):
    """The VM process could not be spawned or did not finish."""


class BuildTimeout(LaunchError):
    """The VM process outlived the configured build timeout."""


class CommitError(BuildError):
    """Staged image could not be renamed to the resulting image name."""
