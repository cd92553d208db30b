"""Peer discovery through remote responders' ``/info`` endpoint."""

from .peer_client import PeerInfoClient

__all__ = ["PeerInfoClient"]
