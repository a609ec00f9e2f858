"""
Test Suite Runner - Selenium-Based Cross-Browser Test Execution
================================================================

Opens the in-browser test suite, waits for `window.runAllTests3x` to show up,
runs it, and reports the outcome. On BrowserStack every browser in the matrix
gets its own session and they all run at the same time.

To run locally on macOS:
    brew install --cask chromedriver
    chromedriver
    python run_ci.py test --webdriver-url http://localhost:9515
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from selenium import webdriver
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.common.exceptions import WebDriverException
from webdriver_manager.chrome import ChromeDriverManager

from ..config import Settings
from ..errors import TestsFailedError
from .capabilities import (
    Capabilities,
    browser_slug,
    browserstack_capabilities,
    build_options,
    local_capabilities,
    select_browsers,
)

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
NO_STRING_RETURNED = "--zaplib_ci: no string was returned--"

# Polls until the suite has registered itself, then resolves with SUCCESS or the error stack
RUN_ALL_TESTS_SCRIPT = """
    const done = arguments[arguments.length - 1];
    const interval = setInterval(() => {
        if (window.runAllTests3x) {
            clearInterval(interval);
            window.runAllTests3x().then(() => done('SUCCESS'), (err) => done(err.stack));
        }
    }, 10);
"""

SESSION_STATUS_SCRIPT = (
    'browserstack_executor: {{"action": "setSessionStatus", "arguments": '
    '{{"status":"{status}","reason": ""}}}}'
)

DriverFactory = Callable[[str, Capabilities], webdriver.Remote]


@dataclass
class BrowserResult:
    """Outcome of the test suite in one browser."""
    browser: str
    passed: bool
    error: str = ""
    screenshot: Optional[Path] = None


def create_remote_driver(webdriver_url: str, capabilities: Capabilities) -> webdriver.Remote:
    """Open a session on a remote WebDriver (BrowserStack hub or chromedriver)."""
    return webdriver.Remote(command_executor=webdriver_url, options=build_options(capabilities))


def create_local_chrome(headless: bool = True) -> webdriver.Chrome:
    """Launch a local Chrome that trusts our self-signed certificate."""
    options = webdriver.ChromeOptions()

    if headless:
        options.add_argument("--headless=new")

    options.add_argument("--ignore-certificate-errors")
    options.add_argument("--disable-gpu")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--window-size=1280,900")
    options.set_capability("acceptInsecureCerts", True)

    service = ChromeService(ChromeDriverManager().install())
    return webdriver.Chrome(service=service, options=options)


class SuiteRunner:
    """
    Runs the test suite in one already-connected browser session.

    USAGE:
        runner = SuiteRunner("local browser", driver, suite_url)
        runner.run()  # raises TestsFailedError
    """

    def __init__(
        self,
        browser_name: str,
        driver: webdriver.Remote,
        suite_url: str,
        *,
        is_browserstack: bool = False,
        script_timeout_s: int = 600,
        screenshots_dir: Optional[Path] = None,
    ):
        self.browser_name = browser_name
        self.driver = driver
        self.suite_url = suite_url
        self.is_browserstack = is_browserstack
        self.script_timeout_s = script_timeout_s
        self.screenshots_dir = screenshots_dir
        self.screenshot: Optional[Path] = None

    def _log(self, level: int, message: str) -> None:
        logger.log(level, f"[{self.browser_name}] {message}")

    def _set_session_status(self, status: str) -> None:
        self.driver.execute_script(SESSION_STATUS_SCRIPT.format(status=status))

    def _capture_screenshot(self) -> None:
        if self.screenshots_dir is None:
            return
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / f"{browser_slug(self.browser_name)}.png"
        try:
            if self.driver.save_screenshot(str(path)):
                self.screenshot = path
                self._log(logging.INFO, f"Screenshot saved to {path}")
            else:
                self._log(logging.WARNING, "Screenshot could not be written")
        except WebDriverException as e:
            self._log(logging.WARNING, f"Screenshot failed: {e.msg}")

    def run(self) -> None:
        self._log(logging.INFO, "Connected to WebDriver...")
        self.driver.set_script_timeout(self.script_timeout_s)
        self.driver.get(self.suite_url)

        self._log(logging.INFO, "Running tests...")
        self._log(logging.INFO, "For console output see the browser/Browserstack directly.")
        value = self.driver.execute_async_script(RUN_ALL_TESTS_SCRIPT)
        outcome = value if isinstance(value, str) else NO_STRING_RETURNED

        self._capture_screenshot()

        if outcome == SUCCESS:
            self._log(logging.INFO, "Tests passed!")
            if self.is_browserstack:
                self._set_session_status("passed")
            return

        if self.is_browserstack:
            # Print the failure before updating BrowserStack, in case that call fails
            self._log(logging.ERROR, f"Tests failed: {outcome}")
            self._set_session_status("failed")
            raise TestsFailedError("Tests failed (see above)")
        raise TestsFailedError(f"Tests failed: {outcome}")


def _quit(browser_name: str, driver) -> None:
    try:
        driver.quit()
    except Exception as e:
        logger.warning(f"[{browser_name}] Error closing session: {e}")


def run_browser(
    browser_name: str,
    capabilities: Capabilities,
    webdriver_url: str,
    settings: Settings,
    *,
    is_browserstack: bool = True,
    driver_factory: DriverFactory = create_remote_driver,
) -> BrowserResult:
    """Connect, run the suite, and always quit. Never raises for test failures."""
    screenshots_dir = (
        settings.resolve(settings.report.screenshots_dir)
        if settings.suite.capture_screenshots
        else None
    )
    suite_url = settings.suite.suite_url(settings.server.port, browserstack=is_browserstack)

    try:
        driver = driver_factory(webdriver_url, capabilities)
    except Exception as e:
        # Refused connections surface as urllib3 errors, not WebDriverException
        logger.error(f"[{browser_name}] Connection error: {e}")
        return BrowserResult(browser=browser_name, passed=False, error=f"Connection error: {e}")

    runner = SuiteRunner(
        browser_name,
        driver,
        suite_url,
        is_browserstack=is_browserstack,
        script_timeout_s=settings.suite.script_timeout_s,
        screenshots_dir=screenshots_dir,
    )
    try:
        runner.run()
        return BrowserResult(browser=browser_name, passed=True, screenshot=runner.screenshot)
    except TestsFailedError as e:
        logger.error(f"[{browser_name}] Run error: {e}")
        return BrowserResult(
            browser=browser_name, passed=False, error=str(e), screenshot=runner.screenshot
        )
    except Exception as e:
        # Dropped hub connections raise urllib3 errors mid-session
        logger.exception(f"[{browser_name}] Run error: {e}")
        return BrowserResult(
            browser=browser_name, passed=False, error=str(e), screenshot=runner.screenshot
        )
    finally:
        _quit(browser_name, driver)


def run_matrix(
    webdriver_url: str,
    local_identifier: str,
    settings: Settings,
    browsers: Optional[Iterable[str]] = None,
    driver_factory: DriverFactory = create_remote_driver,
) -> List[BrowserResult]:
    """
    Run every selected browser on BrowserStack concurrently.
    Raises TestsFailedError (carrying all results) if any browser failed.
    """
    matrix: Dict[str, Capabilities] = {
        name: browserstack_capabilities(base, local_identifier, settings.browserstack)
        for name, base in select_browsers(browsers).items()
    }
    logger.info(f"Running test suite on {len(matrix)} browsers: {', '.join(matrix)}")

    with ThreadPoolExecutor(max_workers=max(1, len(matrix))) as pool:
        futures = [
            pool.submit(
                run_browser,
                name,
                capabilities,
                webdriver_url,
                settings,
                is_browserstack=True,
                driver_factory=driver_factory,
            )
            for name, capabilities in matrix.items()
        ]
        results = [future.result() for future in futures]

    failed = [result.browser for result in results if not result.passed]
    if failed:
        raise TestsFailedError(
            f"At least one test failed: {', '.join(failed)}", results=results
        )
    return results


def run_local(
    settings: Settings,
    webdriver_url: Optional[str] = None,
    driver_factory: Optional[DriverFactory] = None,
) -> BrowserResult:
    """
    Run the suite once in a local browser.

    With a webdriver_url (e.g. chromedriver on http://localhost:9515) a remote
    session is opened; without one, Chrome is launched through webdriver-manager.
    """
    browser_name = "local browser"

    def failed(message: str, screenshot: Optional[Path] = None) -> TestsFailedError:
        result = BrowserResult(
            browser=browser_name, passed=False, error=message, screenshot=screenshot
        )
        return TestsFailedError(message, results=[result])

    try:
        if webdriver_url:
            factory = driver_factory or create_remote_driver
            driver = factory(webdriver_url, local_capabilities())
        else:
            driver = create_local_chrome()
    except Exception as e:
        logger.error(f"[{browser_name}] Connection error: {e}")
        raise failed(f"Connection error: {e}") from e

    screenshots_dir = (
        settings.resolve(settings.report.screenshots_dir)
        if settings.suite.capture_screenshots
        else None
    )
    runner = SuiteRunner(
        browser_name,
        driver,
        settings.suite.suite_url(settings.server.port, browserstack=False),
        script_timeout_s=settings.suite.script_timeout_s,
        screenshots_dir=screenshots_dir,
    )
    try:
        runner.run()
    except TestsFailedError as e:
        raise failed(str(e), runner.screenshot) from e
    except Exception as e:
        logger.exception(f"[{browser_name}] Run error: {e}")
        raise failed(f"Run error: {e}", runner.screenshot) from e
    finally:
        _quit(browser_name, driver)

    return BrowserResult(browser=browser_name, passed=True, screenshot=runner.screenshot)
