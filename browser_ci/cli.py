"""
Browser CI - Command Line Interface
===================================

    python -m browser_ci run [--skip-build] [--browser NAME ...]
    python -m browser_ci test --webdriver-url URL [--browserstack-local-identifier ID]
    python -m browser_ci test --local-chrome
    python -m browser_ci serve [--port 1122] [--root .]
    python -m browser_ci report

Exit codes: 0 success, 1 failed step or failed tests, 2 usage error.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .application import CIPipeline, PipelineSummary
from .infrastructure.config import Settings, get_settings
from .infrastructure.errors import CIError
from .infrastructure.webdriver import BROWSER_MATRIX, DISABLED_BROWSERS, run_local, run_matrix
from .web.server import StaticServer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="browser-ci",
        description="Build the wasm test suite, run it in real browsers, and report screenshot diffs.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--repo-root", type=Path, help="Repository root (default: current directory)")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Full CI run: build, BrowserStack tests, screenshot report")
    run.add_argument("--skip-build", action="store_true", help="Reuse existing build output")
    run.add_argument(
        "--browser",
        action="append",
        dest="browsers",
        metavar="NAME",
        help="Only run this browser from the matrix (repeatable)",
    )
    run.add_argument("--local-identifier", help="Reuse a BrowserStack Local identifier")

    test = sub.add_parser("test", help="Serve the repository over HTTPS and run the in-browser tests")
    test.add_argument("--webdriver-url", help="HTTP(S) URL to connect to the Selenium Webdriver to")
    test.add_argument(
        "--browserstack-local-identifier",
        help="Local identifier for Browserstack; runs the full browser matrix",
    )
    test.add_argument(
        "--local-chrome",
        action="store_true",
        help="Launch a local Chrome instead of connecting to a WebDriver URL",
    )
    test.add_argument(
        "--browser",
        action="append",
        dest="browsers",
        metavar="NAME",
        help="Only run this browser from the matrix (repeatable)",
    )
    test.set_defaults(print_help=test.print_help)

    serve = sub.add_parser("serve", help="Only run the static HTTPS server")
    serve.add_argument("--port", type=int, help="Port to listen on")
    serve.add_argument("--root", type=Path, help="Directory to serve")

    sub.add_parser("report", help="Only diff screenshots and bundle the report")
    sub.add_parser("browsers", help="List the browser matrix")

    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if args.repo_root:
        settings = dataclasses.replace(settings, repo_root=args.repo_root)
    if getattr(args, "port", None) or getattr(args, "root", None):
        server = dataclasses.replace(
            settings.server,
            port=args.port or settings.server.port,
            root=args.root or settings.server.root,
        )
        settings = dataclasses.replace(settings, server=server)
    return settings


def unknown_browsers(names: Optional[List[str]]) -> List[str]:
    known = {**BROWSER_MATRIX, **DISABLED_BROWSERS}
    return [name for name in names or [] if name not in known]


def print_summary(summary: PipelineSummary) -> None:
    print("\n" + "=" * 60)
    print("   CI Summary")
    print("=" * 60)
    for step in summary.steps:
        mark = "ok  " if step.ok else "FAIL"
        detail = f" - {step.detail}" if step.detail else ""
        print(f"   [{mark}] {step.name}{detail}")
    for result in summary.browsers:
        mark = "pass" if result.passed else "FAIL"
        print(f"   [{mark}] {result.browser}")
    if summary.reg_report and summary.reg_report.has_changes:
        print("\n   Screenshots changed - review screenshots_report/index.html")
    print("=" * 60 + "\n")


def cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    for issue in settings.validate():
        logger.warning(issue)

    pipeline = CIPipeline(
        settings,
        skip_build=args.skip_build,
        browsers=args.browsers,
        local_identifier=args.local_identifier,
    )
    try:
        pipeline.run()
    finally:
        print_summary(pipeline.summary)
    return EXIT_OK


def cmd_test(args: argparse.Namespace, settings: Settings) -> int:
    if not args.webdriver_url and not args.local_chrome:
        args.print_help()
        return EXIT_USAGE
    if args.browserstack_local_identifier and not args.webdriver_url:
        logger.error("--browserstack-local-identifier requires --webdriver-url")
        return EXIT_USAGE

    server = StaticServer.from_settings(settings)
    with server:
        if args.browserstack_local_identifier:
            run_matrix(args.webdriver_url, args.browserstack_local_identifier, settings, args.browsers)
        else:
            run_local(settings, webdriver_url=args.webdriver_url)
    return EXIT_OK


def cmd_serve(settings: Settings) -> int:
    print(f"\n   Starting server at https://localhost:{settings.server.port}")
    print("   Press Ctrl+C to stop\n")
    StaticServer.from_settings(settings).serve_forever()
    return EXIT_OK


def cmd_report(settings: Settings) -> int:
    summary = CIPipeline(settings).run_report_only()
    print_summary(summary)
    return EXIT_OK


def cmd_browsers() -> int:
    for name in BROWSER_MATRIX:
        print(name)
    for name in DISABLED_BROWSERS:
        print(f"{name} (disabled)")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    configure_logging(args.verbose)
    settings = _settings_for(args)

    unknown = unknown_browsers(getattr(args, "browsers", None))
    if unknown:
        logger.error(f"Unknown browser(s): {', '.join(unknown)}. See `browser-ci browsers`.")
        return EXIT_USAGE

    try:
        if args.command == "run":
            return cmd_run(args, settings)
        if args.command == "test":
            return cmd_test(args, settings)
        if args.command == "serve":
            return cmd_serve(settings)
        if args.command == "report":
            return cmd_report(settings)
        if args.command == "browsers":
            return cmd_browsers()
    except CIError as e:
        logger.error(str(e))
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_FAILED

    parser.print_help()
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
