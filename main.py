"""
Browser CI - Static Server Entry Point
======================================

Run this to serve the repository over HTTPS, the way browsers see it in CI:
    python main.py

Then open https://localhost:1122/zaplib/web/test_suite in your browser
(accept the self-signed certificate).

To run the full CI job:
    python run_ci.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from browser_ci.cli import main as cli_main


def main():
    """Start the static HTTPS server."""
    print("\n" + "=" * 50)
    print("   Browser CI - Static HTTPS Server")
    print("=" * 50)

    return cli_main(["serve", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
