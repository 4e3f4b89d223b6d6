"""Launcher wrapper to keep top-level script while code lives in package.
"""

import sys
import traceback

from dotenv import load_dotenv

# Load .env before any hprof_analyzer imports (so HPROF_* settings are set)
load_dotenv()


def main():
    try:
        from hprof_analyzer_cli import main as _cli_main
        sys.exit(_cli_main())
    except Exception:
        traceback.print_exc()
        sys.stderr.flush()
        sys.exit(1)


if __name__ == "__main__":
    main()
