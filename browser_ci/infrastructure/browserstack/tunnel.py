"""
BrowserStack Local - Tunnel Daemon Control
===========================================

BrowserStack browsers reach our HTTPS server through the BrowserStackLocal
daemon. Each CI run uses its own local identifier so that several runs can
share one account in parallel without their tunnels colliding.
"""

import logging
import random
from typing import Optional

import requests

from ..process import make_step, run_step

logger = logging.getLogger(__name__)

# Same range as bash $RANDOM
_RANDOM_MAX = 32767


def generate_local_identifier(rng: Optional[random.Random] = None) -> str:
    """Three random numbers glued together, e.g. '1832702117455'."""
    rng = rng or random.Random()
    return "".join(str(rng.randint(0, _RANDOM_MAX)) for _ in range(3))


class BrowserStackTunnel:
    """
    Starts and stops the BrowserStackLocal daemon.

    Usage:
        with BrowserStackTunnel(key, local_identifier) as tunnel:
            ...  # browsers can now load https://bs-local.com:<port>/
    """

    def __init__(self, key: str, local_identifier: str, binary: str = "BrowserStackLocal"):
        self.key = key
        self.local_identifier = local_identifier
        self.binary = binary
        self._started = False

    def _argv(self, action: str) -> list:
        return [
            self.binary,
            "--key", self.key,
            "--debug-utility",
            "--daemon", action,
            "--local-identifier", self.local_identifier,
        ]

    def start(self) -> None:
        """Start the daemon. Raises StepFailedError if it does not come up."""
        run_step(make_step("BrowserStackLocal start", self._argv("start"), secrets=[self.key]))
        self._started = True
        logger.info(f"BrowserStack Local running with identifier {self.local_identifier}")

    def stop(self) -> None:
        """Stop the daemon. Failures are logged, never raised."""
        if not self._started:
            return
        result = run_step(
            make_step(
                "BrowserStackLocal stop",
                self._argv("stop"),
                allow_failure=True,
                secrets=[self.key],
            )
        )
        self._started = False
        if not result.ok:
            logger.warning(f"BrowserStack Local {self.local_identifier} may still be running")

    @property
    def is_running(self) -> bool:
        return self._started

    def __enter__(self) -> "BrowserStackTunnel":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def check_hub(webdriver_url: str, timeout: int = 15) -> bool:
    """
    Ping the WebDriver hub's /status endpoint.
    Credentials embedded in the URL are sent as basic auth by requests.
    """
    status_url = webdriver_url.rstrip("/") + "/status"
    try:
        response = requests.get(status_url, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"WebDriver hub unreachable: {e}")
        return False

    if not response.ok:
        logger.error(f"WebDriver hub returned HTTP {response.status_code}")
        return False

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    value = payload.get("value") if isinstance(payload, dict) else None
    ready = value.get("ready", True) if isinstance(value, dict) else True
    if not ready:
        logger.warning("WebDriver hub reports it is not ready")
    return bool(ready)
