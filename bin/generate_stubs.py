#!/usr/bin/env python3
"""
Native method stub generator

Usage:
    python generate_stubs.py -cp build/classes java.lang.Thread
    python generate_stubs.py -cp build/classes -d natives --ts java/lang
"""

import sys
from pathlib import Path

# Add parent directory to path so nativestub package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from nativestub.cli import main


if __name__ == "__main__":
    sys.exit(main())
