# api/__init__.py
from api.config import ServerConfig
from api.server import (
    create_app,
    build_service,
    configure_logging,
)

__all__ = [
    "ServerConfig",
    "create_app",
    "build_service",
    "configure_logging",
]
