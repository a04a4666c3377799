"""
HTTP server setup.
"""

from aiohttp import web

from enroll_gateway.core.config import Settings
from enroll_gateway.core.logging import get_logger
from enroll_gateway.services.builds import BuildOrchestrator
from enroll_gateway.services.eas import EasCli
from enroll_gateway.services.registry import DeviceRegistry
from enroll_gateway.services.runner import SubprocessRunner
from enroll_gateway.state.builds import BuildsStore
from enroll_gateway.state.devices import DevicesStore
from enroll_gateway.web import handlers, manifest
from enroll_gateway.web.keys import builds_key, registry_key, settings_key

logger = get_logger(__name__)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn unexpected handler errors into a JSON 500 instead of a crash."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response(
            {"success": False, "error": "Internal server error", "details": str(e)},
            status=500,
        )


def build_cli(settings: Settings) -> EasCli:
    """Create the CLI adapter described by settings."""
    runner = SubprocessRunner(settings.working_dir)
    return EasCli(
        runner,
        command=settings.eas_args,
        platform=settings.build_platform,
        profile=settings.build_profile,
        register_timeout=settings.register_timeout,
        build_timeout=settings.build_timeout,
        max_output_bytes=settings.max_output_bytes,
    )


def create_web_app(settings: Settings, cli: EasCli | None = None) -> web.Application:
    """
    Create the aiohttp application with fresh in-memory state.

    Args:
        settings: Application settings
        cli: CLI adapter override, built from settings when omitted
    """
    cli = cli or build_cli(settings)

    app = web.Application(middlewares=[error_middleware])
    app[settings_key] = settings
    app[registry_key] = DeviceRegistry(cli, DevicesStore())
    app[builds_key] = BuildOrchestrator(cli, BuildsStore(ttl=settings.build_record_ttl))

    app.router.add_get("/manifest.plist", manifest.serve_manifest)
    app.router.add_post("/api/register-device", handlers.register_device)
    app.router.add_post("/api/trigger-build", handlers.trigger_build)
    app.router.add_get("/api/build-status/{udid}", handlers.build_status)
    app.router.add_get("/device-info", handlers.device_info)
    app.router.add_get("/", manifest.serve_index)
    app.router.add_get("/{tail:.+}", manifest.serve_static)

    return app


async def start_server(app: web.Application, host: str = "0.0.0.0", port: int = 3748) -> web.AppRunner:
    """
    Start serving the application.

    Args:
        app: Application to serve
        host: Host to bind to
        port: Port to bind to

    Returns:
        The runner, to be cleaned up on shutdown
    """
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Server running on {host}:{port}")
    logger.info(f"Open: http://localhost:{port}/")
    logger.info(f"Manifest: http://localhost:{port}/manifest.plist")
    return runner
