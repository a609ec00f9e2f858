"""
Static HTTPS Server Runner
==========================

Runs the static file app under uvicorn on a background thread so the test
runner can drive browsers from the main thread.

USAGE:
    with StaticServer(root=".", port=1122, hostnames=["localhost", "bs-local.com"]):
        run_matrix(...)
"""

import logging
import threading
import time
import warnings
from pathlib import Path
from typing import Optional, Sequence, Union

import requests
import urllib3
import uvicorn

from ..infrastructure.errors import ServerError
from ..infrastructure.tls import CertificatePair, generate_self_signed
from .app import create_app

logger = logging.getLogger(__name__)


class StaticServer:
    """uvicorn serving `root` over HTTPS with a throwaway certificate."""

    def __init__(
        self,
        root: Union[str, Path] = ".",
        port: int = 1122,
        hostnames: Sequence[str] = ("localhost", "bs-local.com"),
        host: str = "0.0.0.0",
        startup_timeout_s: float = 30.0,
        certificate: Optional[CertificatePair] = None,
    ):
        self.root = Path(root)
        self.port = port
        self.hostnames = tuple(hostnames)
        self.host = host
        self.startup_timeout_s = startup_timeout_s
        self._certificate = certificate
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(cls, settings) -> "StaticServer":
        server = settings.server
        return cls(
            root=settings.resolve(server.root),
            port=server.port,
            hostnames=server.hostnames,
            host=server.host,
            startup_timeout_s=server.startup_timeout_s,
        )

    @property
    def url(self) -> str:
        return f"https://localhost:{self.port}"

    def _wait_until_ready(self) -> None:
        deadline = time.monotonic() + self.startup_timeout_s
        while time.monotonic() < deadline:
            if self._thread is not None and not self._thread.is_alive():
                raise ServerError(f"Static server on port {self.port} exited during startup")
            try:
                # Self-signed certificate; only reachability matters here
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
                    requests.head(self.url + "/", verify=False, timeout=2)
                return
            except requests.RequestException:
                time.sleep(0.2)
        raise ServerError(
            f"Static server did not answer on {self.url} within {self.startup_timeout_s:.0f}s"
        )

    def start(self) -> "StaticServer":
        if self._certificate is None:
            self._certificate = generate_self_signed(self.hostnames)

        config = uvicorn.Config(
            create_app(self.root),
            host=self.host,
            port=self.port,
            ssl_certfile=str(self._certificate.certfile),
            ssl_keyfile=str(self._certificate.keyfile),
            log_level="info",
        )
        self._server = uvicorn.Server(config)

        logger.info(f"Static HTTPS server of '{self.root}' starting on port {self.port}")
        self._thread = threading.Thread(target=self._server.run, name="static-server", daemon=True)
        self._thread.start()

        try:
            self._wait_until_ready()
        except ServerError:
            self.stop()
            raise

        logger.info(f"Serving on {self.url}")
        return self

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=10)
            if self._thread.is_alive():
                logger.warning("Static server thread did not stop within 10s")
        self._server = None
        self._thread = None
        logger.info("Static server stopped")

    def serve_forever(self) -> None:
        """Block until Ctrl+C."""
        self.start()
        try:
            while self._thread is not None and self._thread.is_alive():
                self._thread.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.stop()

    def __enter__(self) -> "StaticServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
