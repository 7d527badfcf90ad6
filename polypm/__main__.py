#!/usr/bin/env python3
"""
Main entry point for polypm.
"""

from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
