#!/usr/bin/env python3
"""
cratesync - Main Entry Point

Collects crates from the curated GitHub list, crates.io and a local
list, and keeps local mirrors of GitHub repositories.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from cratesync.cli import main

if __name__ == "__main__":
    main()
