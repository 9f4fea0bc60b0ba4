"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Request

from lovehub.services import Services


def get_services(request: Request) -> Services:
    """Return the service container built during application startup."""
    return request.app.state.services
