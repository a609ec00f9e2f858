from .settings import (
    BrowserStackSettings,
    BuildSettings,
    BuildStep,
    ReportSettings,
    ServerSettings,
    Settings,
    SuiteSettings,
    get_settings,
)

__all__ = [
    "BrowserStackSettings",
    "BuildSettings",
    "BuildStep",
    "ReportSettings",
    "ServerSettings",
    "Settings",
    "SuiteSettings",
    "get_settings",
]
