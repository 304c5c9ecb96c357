"""
Main entry point for the sqlbrowser command.
"""
import sys

from sqlbrowser.app import main

if __name__ == "__main__":
    sys.exit(main())
