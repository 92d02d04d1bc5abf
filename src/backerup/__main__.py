# pyright: standard

"""backerup: backerup/__main__.py.

Scheduled file backups into versioned packages, each holding a full copy
plus differential or incremental snapshots.
"""

import sys

from .cli.dispatcher import main as cli_main


def main() -> None:
    """Main function."""
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
