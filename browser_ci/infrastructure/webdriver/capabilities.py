"""
Browser Matrix - WebDriver Capabilities
========================================

Capability sets for every browser the test suite runs on in BrowserStack,
plus the decoration every session needs (SSL, tunnel identifier, dashboard
project/build names).
"""

import copy
import re
from typing import Any, Dict, Iterable, Optional

from selenium.webdriver.common.options import ArgOptions

from ..config import BrowserStackSettings

Capabilities = Dict[str, Any]

BSTACK_OPTIONS = "bstack:options"

BROWSER_MATRIX: Dict[str, Capabilities] = {
    "OS X Monterey, Chrome": {
        BSTACK_OPTIONS: {
            "os": "OS X",
            "osVersion": "Monterey",
            "consoleLogs": "verbose",
        },
        "browserName": "Chrome",
        "browserVersion": "latest",
    },
    "OS X Monterey, Edge": {
        BSTACK_OPTIONS: {
            "os": "OS X",
            "osVersion": "Monterey",
        },
        "browserName": "Edge",
        "browserVersion": "latest",
    },
    "Windows 11, Chrome": {
        BSTACK_OPTIONS: {
            "os": "Windows",
            "osVersion": "11",
            "consoleLogs": "verbose",
        },
        "browserName": "Chrome",
        "browserVersion": "latest",
    },
    "Windows 11, Edge": {
        BSTACK_OPTIONS: {
            "os": "Windows",
            "osVersion": "11",
        },
        "browserName": "Edge",
        "browserVersion": "latest",
    },
    "Samsung Galaxy S21, Android 11.0": {
        BSTACK_OPTIONS: {
            "osVersion": "11.0",
            "deviceName": "Samsung Galaxy S21",
            "appiumVersion": "1.22.0",
            "consoleLogs": "verbose",
        },
        "browserName": "Android",
    },
}

# Known to fail in the test suite; selectable by name but not run by default
DISABLED_BROWSERS: Dict[str, Capabilities] = {
    "OS X Monterey, Firefox": {
        BSTACK_OPTIONS: {"os": "OS X", "osVersion": "Monterey"},
        "browserName": "Firefox",
        "browserVersion": "latest",
    },
    "OS X Monterey, Safari": {
        BSTACK_OPTIONS: {"os": "OS X", "osVersion": "Monterey"},
        "browserName": "Safari",
        "browserVersion": "latest",
    },
    "Windows 11, Firefox": {
        BSTACK_OPTIONS: {"os": "Windows", "osVersion": "11"},
        "browserName": "Firefox",
        "browserVersion": "latest",
    },
    "iPhone 13, iOS 15": {
        "device": "iPhone 13",
        "osVersion": "15",
        "browserName": "iPhone",
    },
}


def select_browsers(names: Optional[Iterable[str]] = None) -> Dict[str, Capabilities]:
    """
    Pick capability sets by name. No names means the default matrix.
    Raises KeyError for an unknown browser name.
    """
    if not names:
        return copy.deepcopy(BROWSER_MATRIX)

    known = {**BROWSER_MATRIX, **DISABLED_BROWSERS}
    selected = {}
    for name in names:
        if name not in known:
            raise KeyError(f"Unknown browser '{name}'. Known: {', '.join(sorted(known))}")
        selected[name] = copy.deepcopy(known[name])
    return selected


def browserstack_capabilities(
    base: Capabilities,
    local_identifier: str,
    settings: BrowserStackSettings,
) -> Capabilities:
    """Return a decorated copy of `base` ready for a BrowserStack session."""
    capabilities = copy.deepcopy(base)
    capabilities["acceptSslCerts"] = True

    bstack = capabilities.setdefault(BSTACK_OPTIONS, {})
    bstack["projectName"] = settings.project_name
    bstack["buildName"] = settings.build_name
    bstack["local"] = "true"
    bstack["networkLogs"] = "true"
    bstack["seleniumVersion"] = settings.selenium_version
    bstack["localIdentifier"] = local_identifier
    return capabilities


def local_capabilities() -> Capabilities:
    # The static server uses a self-signed certificate
    return {"acceptSslCerts": True}


def build_options(capabilities: Capabilities) -> ArgOptions:
    """Wrap a raw capability dict in a Selenium 4 options object for webdriver.Remote."""
    options = ArgOptions()
    for name, value in capabilities.items():
        options.set_capability(name, copy.deepcopy(value))
    return options


def browser_slug(browser_name: str) -> str:
    """'OS X Monterey, Chrome' -> 'os_x_monterey_chrome'"""
    slug = re.sub(r"[^a-z0-9]+", "_", browser_name.lower())
    return slug.strip("_") or "browser"
