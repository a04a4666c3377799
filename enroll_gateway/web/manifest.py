"""
Installation manifest, install page and static files.

The installer on the device refuses a manifest unless it is served as
application/xml and never cached, so those headers are fixed.
"""

from pathlib import Path

from aiohttp import web

from enroll_gateway.core.logging import get_logger
from enroll_gateway.web.keys import settings_key

logger = get_logger(__name__)

MANIFEST_NAME = "manifest.plist"
INDEX_NAME = "install.html"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Access-Control-Allow-Origin": "*",
}

MANIFEST_HEADERS = {
    "Content-Type": "application/xml; charset=utf-8",
    **NO_CACHE_HEADERS,
}

PLIST_CONTENT_TYPE = "application/xml"


def _public_dir(request: web.Request) -> Path:
    return request.app[settings_key].public_dir.resolve()


async def serve_manifest(request: web.Request) -> web.Response:
    """GET /manifest.plist, re-read from disk on every request."""
    path = _public_dir(request) / MANIFEST_NAME
    logger.info(f"Manifest requested by {request.remote}")

    if not path.is_file():
        logger.error(f"{MANIFEST_NAME} not found at {path}")
        return web.Response(status=404, text=f"{MANIFEST_NAME} not found", headers=NO_CACHE_HEADERS)

    try:
        content = path.read_bytes()
    except OSError as e:
        logger.error(f"Error reading {path}: {e}")
        return web.Response(status=500, text=f"Error reading {MANIFEST_NAME}", headers=NO_CACHE_HEADERS)

    logger.info(f"{MANIFEST_NAME} sent ({len(content)} bytes)")
    return web.Response(body=content, headers=MANIFEST_HEADERS)


async def serve_index(request: web.Request) -> web.StreamResponse:
    """GET / returns the installation page."""
    path = _public_dir(request) / INDEX_NAME
    if not path.is_file():
        logger.error(f"{INDEX_NAME} not found at {path}")
        return web.Response(status=404, text=f"{INDEX_NAME} not found")
    return web.FileResponse(path)


async def serve_static(request: web.Request) -> web.StreamResponse:
    """GET /{tail}, any file under the public directory."""
    root = _public_dir(request)
    path = (root / request.match_info["tail"]).resolve()

    if not path.is_relative_to(root) or not path.is_file():
        return web.Response(status=404, text="Not Found")

    if path.suffix == ".plist":
        return web.FileResponse(path, headers={"Content-Type": PLIST_CONTENT_TYPE})
    return web.FileResponse(path)
