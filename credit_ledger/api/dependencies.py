"""Dependency injection for FastAPI endpoints"""

from fastapi import Header, Request


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_is_privileged(x_actor_privileged: bool = Header(default=False)) -> bool:
    """Privileged-actor capability, resolved upstream and forwarded as a boolean header"""
    return x_actor_privileged
