"""Module entry point: ``python -m squeakbuild``."""

from __future__ import annotations

import sys

from squeakbuild import cli

if __name__ == "__main__":
    sys.exit(cli.main())
