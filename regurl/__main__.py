"""
Package entry point.

Allows running the application via:

    python -m regurl

This simply forwards execution to regurl.cli.main().
"""

from regurl.cli import main

if __name__ == "__main__":
    main()
