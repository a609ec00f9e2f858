"""
CI Runner - Build, Cross-Browser Tests, Screenshot Report
==========================================================

Runs the whole CI job from the repository root:

    export BROWSERSTACK_USERNAME=... BROWSERSTACK_KEY=...
    python run_ci.py

Other commands (local browsers, serving only, report only):
    python run_ci.py --help
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from browser_ci.cli import main


if __name__ == "__main__":
    args = sys.argv[1:] or ["run"]

    print("\n" + "=" * 60)
    print("   Browser CI - Cross-Browser Tests")
    print("=" * 60 + "\n")

    sys.exit(main(args))
