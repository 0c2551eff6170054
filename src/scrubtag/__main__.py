"""
Main entry point for running scrubtag as a module.
Allows: python -m scrubtag ...
"""
import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
