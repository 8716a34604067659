"""
Entry point for running hooked as a module.

Allows running as: python -m hooked
"""

from hooked.cli import cli_main

if __name__ == "__main__":
    cli_main()
