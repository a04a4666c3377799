"""
Typed keys for objects stored on the aiohttp application.
"""

from aiohttp import web

from enroll_gateway.core.config import Settings
from enroll_gateway.services.builds import BuildOrchestrator
from enroll_gateway.services.registry import DeviceRegistry

settings_key = web.AppKey("settings", Settings)
registry_key = web.AppKey("registry", DeviceRegistry)
builds_key = web.AppKey("builds", BuildOrchestrator)
