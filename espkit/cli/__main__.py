"""
Entry point for running the espkit CLI package as a module.

Usage: python -m espkit.cli [command] [options]
"""

from espkit.cli.parser import main

if __name__ == "__main__":
    main()
