"""Allow running as ``python -m paper_match``."""

import sys

from paper_match.cli import main

if __name__ == "__main__":
    sys.exit(main())
