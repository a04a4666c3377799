"""
Application factory and main entry point.
"""

import asyncio

from aiohttp import web

from enroll_gateway.core.config import Settings, settings as default_settings
from enroll_gateway.core.logging import setup_logging, get_logger
from enroll_gateway.web.server import create_web_app, start_server

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> web.Application:
    """Create and configure the web application."""
    settings = settings or default_settings
    if not settings.public_dir.is_dir():
        logger.warning(f"Public directory {settings.public_dir.resolve()} does not exist")
    logger.info(f"External CLI runs in {settings.working_dir}")
    return create_web_app(settings)


async def main() -> None:
    """Main application entry point."""
    setup_logging(default_settings.log_level)
    logger.info("Starting gateway...")

    app = create_app(default_settings)
    runner = await start_server(app, default_settings.host, default_settings.port)
    logger.info("Manifest will be served with Content-Type: application/xml")

    # Keep running until cancelled
    stop_signal = asyncio.Event()
    try:
        await stop_signal.wait()
    except asyncio.CancelledError:
        pass
    finally:
        await runner.cleanup()
