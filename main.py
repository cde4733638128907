"""Entry point for the lazylog command line."""

import sys

from lazylog.cli import main

if __name__ == "__main__":
    sys.exit(main())
