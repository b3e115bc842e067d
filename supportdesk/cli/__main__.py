from __future__ import annotations

import sys

from . import support_cli


def main() -> int:
    return support_cli.main()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
