"""squeakbuild package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "exceptions",
    "executor",
    "launcher",
    "models",
    "registry",
    "utils",
    "workspace",
]
