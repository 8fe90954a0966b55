"""
Application layer - DTOs and service wiring.

This layer sits between the HTTP/CLI surfaces and the core services:
1. Defining request/response DTOs for API contracts
2. Building the service graph over the storage layer

API handlers reach core services only through this layer.
"""

from src.application.services import (
    ServiceContainer,
    build_services,
    get_services,
    reset_services,
    shutdown_services,
)

__all__ = [
    "ServiceContainer",
    "build_services",
    "get_services",
    "shutdown_services",
    "reset_services",
]
