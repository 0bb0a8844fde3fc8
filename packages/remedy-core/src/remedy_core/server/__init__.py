"""RPC service for the step engine."""

from remedy_core.server.api import engine_router, get_reasoning_client
from remedy_core.server.app import app, create_app

__all__ = ["app", "create_app", "engine_router", "get_reasoning_client"]
