"""Middlewares run on every event before handler dispatch."""

from .base import Middleware, MiddlewareError
from .builtin import DebugMiddleware, IgnoreSelf

__all__ = ["DebugMiddleware", "IgnoreSelf", "Middleware", "MiddlewareError"]
