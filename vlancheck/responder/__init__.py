"""The ``/ip`` and ``/info`` HTTP responder that peers probe."""

from .app import create_app, serve

__all__ = ["create_app", "serve"]
