"""
Needle Dashboard
================

Client-side session and data layer of the tunnel dashboard: routing gate,
resource stores and process bootstrap.
"""

from .router import LOGIN_ROUTE, ROUTES, Route, Router

__all__ = ["LOGIN_ROUTE", "ROUTES", "Route", "Router"]
