"""Allow running MediaGate CLI as a module: python -m mediagate."""

import sys

from mediagate.cli import main

if __name__ == "__main__":
    sys.exit(main())
