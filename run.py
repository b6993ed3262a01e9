#!/usr/bin/env python3
"""
Personal Ledger Entry Point

Runs the ledger command line interface against the configured database.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from personal_ledger.cli import main


if __name__ == "__main__":
    main()
