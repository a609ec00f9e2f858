from __future__ import annotations

from pathlib import Path

import pytest

from browser_ci.infrastructure.config import (
    BrowserStackSettings,
    ReportSettings,
    ServerSettings,
    Settings,
    SuiteSettings,
)


class FakeDriver:
    """Stands in for a Selenium session."""

    def __init__(self, result: object = "SUCCESS", screenshot_ok: bool = True):
        self.result = result
        self.screenshot_ok = screenshot_ok
        self.visited: list[str] = []
        self.scripts: list[str] = []
        self.script_timeout: int | None = None
        self.quit_called = False

    def set_script_timeout(self, seconds: int) -> None:
        self.script_timeout = seconds

    def get(self, url: str) -> None:
        self.visited.append(url)

    def execute_async_script(self, script: str) -> object:
        return self.result

    def execute_script(self, script: str) -> None:
        self.scripts.append(script)

    def save_screenshot(self, path: str) -> bool:
        if self.screenshot_ok:
            Path(path).write_bytes(b"\x89PNG fake")
        return self.screenshot_ok

    def quit(self) -> None:
        self.quit_called = True


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        browserstack=BrowserStackSettings(key="secret-key", username="ci-user"),
        server=ServerSettings(port=1122, root=Path(".")),
        suite=SuiteSettings(script_timeout_s=30, capture_screenshots=True),
        report=ReportSettings(reg_cli=Path("node_modules/.bin/reg-cli")),
        repo_root=tmp_path,
    )


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def make_driver():
    return FakeDriver
