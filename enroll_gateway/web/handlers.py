"""
JSON API handlers for device registration and builds.
"""

from typing import Any

from aiohttp import web

from enroll_gateway.core.exceptions import ExternalToolError, ToolTimeoutError, ValidationError
from enroll_gateway.core.logging import get_logger
from enroll_gateway.web.keys import builds_key, registry_key

logger = get_logger(__name__)

BUILD_NOTE = "The build may take a few minutes. You will be notified when it is ready."

DEVICE_INFO = {
    "message": "To register your device you need to:",
    "steps": [
        "1. Get your iPhone UDID (Settings > General > About > Identifier)",
        "2. Register it in the Apple Developer Portal or via EAS Build",
        "3. Generate a new build that includes the registered device",
        "4. Install the app",
    ],
    "note": "The device must be registered BEFORE the build is generated",
    "autoRegister": "You can now register automatically from the installation page!",
}


async def _read_body(request: web.Request) -> dict[str, Any]:
    """Parse a JSON object body; anything else counts as empty."""
    if not request.can_read_body:
        return {}
    try:
        payload = await request.json()
    except ValueError:
        logger.warning(f"Malformed JSON body on {request.path}")
        return {}
    return payload if isinstance(payload, dict) else {}


def _string_field(body: dict[str, Any], name: str) -> str | None:
    value = body.get(name)
    return value if isinstance(value, str) else None


def _validation_failed(error: ValidationError) -> web.Response:
    return web.json_response({"success": False, "error": str(error)}, status=400)


def _tool_failed(title: str, error: ExternalToolError) -> web.Response:
    if isinstance(error, ToolTimeoutError):
        title = f"{title}: external tool timed out"
    payload = {
        "success": False,
        "error": title,
        "details": str(error),
    }
    if error.stderr:
        payload["stderr"] = error.stderr
    return web.json_response(payload, status=500)


async def register_device(request: web.Request) -> web.Response:
    """POST /api/register-device"""
    body = await _read_body(request)
    udid = _string_field(body, "udid")
    device_name = _string_field(body, "deviceName")
    logger.info(f"Register request for {udid} ({device_name or 'no name'})")

    try:
        result = await request.app[registry_key].register(udid, device_name)
    except ValidationError as e:
        return _validation_failed(e)
    except ExternalToolError as e:
        return _tool_failed("Failed to register device", e)

    if result.already_registered:
        return web.json_response({
            "success": True,
            "message": "Device already registered",
            "udid": result.udid,
            "alreadyRegistered": True,
        })

    return web.json_response({
        "success": True,
        "message": "Device registered successfully",
        "udid": result.udid,
        "output": result.output,
    })


async def trigger_build(request: web.Request) -> web.Response:
    """POST /api/trigger-build"""
    body = await _read_body(request)
    udid = _string_field(body, "udid")
    logger.info(f"Build trigger request for {udid}")

    try:
        result = await request.app[builds_key].trigger_build(udid)
    except ValidationError as e:
        return _validation_failed(e)
    except ExternalToolError as e:
        return _tool_failed("Failed to trigger build", e)

    record = result.record
    if result.already_pending:
        return web.json_response({
            "success": True,
            "message": "Build already in progress",
            "buildId": record.build_id,
            "status": record.status.value,
        })

    return web.json_response({
        "success": True,
        "message": "Build triggered successfully",
        "buildId": record.build_id,
        "status": record.status.value,
        "note": BUILD_NOTE,
    })


async def build_status(request: web.Request) -> web.Response:
    """GET /api/build-status/{udid}"""
    udid = request.match_info["udid"]
    record = request.app[builds_key].get_status(udid)

    if record is None:
        return web.json_response({
            "success": False,
            "message": "No build found for this device",
        })

    return web.json_response({"success": True, **record.to_dict()})


async def device_info(request: web.Request) -> web.Response:
    """GET /device-info"""
    return web.json_response(DEVICE_INFO)
