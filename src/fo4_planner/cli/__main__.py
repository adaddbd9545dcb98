"""CLI entry point: python -m fo4_planner.cli [BUILD] [--catalog FILE] [--builds-dir DIR]"""

from __future__ import annotations

import sys

from fo4_planner.cli.shell import main


if __name__ == "__main__":
    sys.exit(main())
