"""Main entry point when executing fastpurge as a package.

This allows running the package using python -m fastpurge.
"""

from fastpurge.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
