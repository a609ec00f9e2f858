from .capabilities import (
    BROWSER_MATRIX,
    DISABLED_BROWSERS,
    browser_slug,
    browserstack_capabilities,
    build_options,
    local_capabilities,
    select_browsers,
)
from .test_runner import (
    BrowserResult,
    SuiteRunner,
    create_local_chrome,
    create_remote_driver,
    run_browser,
    run_local,
    run_matrix,
)

__all__ = [
    "BROWSER_MATRIX",
    "DISABLED_BROWSERS",
    "BrowserResult",
    "SuiteRunner",
    "browser_slug",
    "browserstack_capabilities",
    "build_options",
    "create_local_chrome",
    "create_remote_driver",
    "local_capabilities",
    "run_browser",
    "run_local",
    "run_matrix",
    "select_browsers",
]
