"""Request-scoped accessors for application state."""

from fastapi import Request

from pricewatch.monitor.controller import MonitorController


def get_controller(request: Request) -> MonitorController:
    """Return the controller the app was created with."""
    return request.app.state.controller
