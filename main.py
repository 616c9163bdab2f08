"""Quark: extension manager

Usage:
    python main.py -a bundles:reload -l
    python main.py -a extensions:enable -t sqlite.driver
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from quark.cli.cli import main


if __name__ == "__main__":
    main()
