"""Main entry point when executing cmsclient as a package.

This allows running the package using python -m cmsclient.
"""

from cmsclient.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
