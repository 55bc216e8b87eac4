"""Routers package."""

from . import (
    health,
    auth,
    shares,
    roles,
    dashboard,
)
