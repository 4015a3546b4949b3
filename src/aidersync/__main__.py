"""Entry point for ``python -m aidersync``."""

import sys

from aidersync.cli import main

if __name__ == "__main__":
    sys.exit(main())
