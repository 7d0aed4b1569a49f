"""Middleware components."""

from .auth import JWTBearer, client_ip, get_current_actor

__all__ = ["JWTBearer", "client_ip", "get_current_actor"]
