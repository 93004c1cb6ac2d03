"""Run gfsprune: python -m gfsprune"""

import sys

from gfsprune.cli import main

if __name__ == "__main__":
    sys.exit(main())
