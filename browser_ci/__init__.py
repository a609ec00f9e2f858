# Browser CI - Cross-Browser Test & Visual Regression Runner
# ==========================================================
# Builds the wasm test suite, runs it in a matrix of real browsers on
# BrowserStack, and bundles a screenshot diff report.
#
# ARCHITECTURE LAYERS:
# - Presentation:   CLI entry points (cli.py, run_ci.py, main.py)
# - Application:    The CI pipeline (step ordering, abort-on-error)
# - Web:            Static HTTPS server the browsers load the suite from
# - Infrastructure: External tools (cargo, yarn, BrowserStackLocal,
#                   Selenium WebDriver, reg-cli)

__version__ = "0.1.0"
