#!/usr/bin/env python3
"""
GranjaPro poultry farm manager
Main execution script - Run this file to start the console
"""

import sys
from pathlib import Path

# Add current directory to Python path
sys.path.insert(0, str(Path(__file__).parent))

from granjapro.main import main

if __name__ == "__main__":
    sys.exit(main())
