"""
FastAPI Web Application - Static HTTPS File Server
===================================================

Serves the repository (build output, test_suite, wasm) to the browsers under
test. Every response carries the cross-origin isolation headers the wasm
threads need, directories fall back to index.html or a plain listing.
"""

import html
import logging
import mimetypes
from pathlib import Path
from typing import Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse


logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"

# Streaming wasm compilation requires the exact MIME type
mimetypes.add_type("application/wasm", ".wasm")

ISOLATION_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Embedder-Policy": "require-corp",
    "Access-Control-Allow-Origin": "*",
}

LISTING_CSS = """
    body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 32px; color: #1e293b; }
    h1 { font-size: 18px; font-weight: 600; }
    ul { list-style: none; padding: 0; }
    li { padding: 2px 0; }
    a { color: #7c3aed; text-decoration: none; }
    a:hover { text-decoration: underline; }
"""


def render_listing(url_path: str, directory: Path) -> str:
    """Plain HTML index of a directory without an index.html."""
    entries = sorted(directory.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
    items = []
    if url_path != "/":
        items.append('<li><a href="../">../</a></li>')
    for entry in entries:
        name = entry.name + ("/" if entry.is_dir() else "")
        escaped = html.escape(name)
        items.append(f'<li><a href="{escaped}">{escaped}</a></li>')

    title = html.escape(f"Index of {url_path}")
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>{LISTING_CSS}</style>
</head>
<body>
    <h1>{title}</h1>
    <ul>
        {''.join(items)}
    </ul>
</body>
</html>"""


def resolve_path(root: Path, url_path: str) -> Path:
    """Map a URL path onto the served root. Anything escaping the root is a 404."""
    candidate = (root / url_path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        raise HTTPException(status_code=404, detail="Not Found")
    return candidate


def create_app(root: Union[str, Path]) -> FastAPI:
    """Build the static server app for `root`."""
    served_root = Path(root).resolve()
    app = FastAPI(title="Browser CI static server", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.root = served_root

    @app.middleware("http")
    async def add_isolation_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in ISOLATION_HEADERS.items():
            response.headers[name] = value
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response

    @app.api_route("/{file_path:path}", methods=["GET", "HEAD"])
    async def serve(file_path: str, request: Request):
        target = resolve_path(served_root, file_path)

        if target.is_dir():
            url_path = request.url.path
            if not url_path.endswith("/"):
                query = f"?{request.url.query}" if request.url.query else ""
                return RedirectResponse(url=f"{url_path}/{query}", status_code=302)
            index = target / INDEX_FILE
            if index.is_file():
                return FileResponse(index)
            return HTMLResponse(render_listing(url_path, target))

        if target.is_file():
            return FileResponse(target)

        raise HTTPException(status_code=404, detail="Not Found")

    return app

