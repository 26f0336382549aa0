"""
CDSP - run a single editing task over a scene file.

Usage:
    python main.py split scene.yaml --source parcel --targets cut
"""

import sys

from cdsp_cli.cli import main


if __name__ == '__main__':
    sys.exit(main())
