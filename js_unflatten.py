#!/usr/bin/env python3
"""Command-line entry point for control-flow deflattening of JavaScript."""

from __future__ import annotations

import sys

from jsunflatten.cli import main


if __name__ == "__main__":
    sys.exit(main())
