#!/usr/bin/env python3
"""
Testomat.io run manager

Run this script to open or close a Testomat.io run shared by several
pytest processes.

Usage:
    python run.py start                    # Create a run, print its uid
    python run.py start -t "Nightly"       # Create a run with a title
    python run.py finish UID -d 120        # Finish a run after 120 seconds
"""

import sys
from testomat_reporter.cli import main

if __name__ == "__main__":
    sys.exit(main())
