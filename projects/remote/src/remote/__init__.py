"""Client for the schema sync backend."""

from remote.client import ApiBridge, TransportError

__all__ = ["ApiBridge", "TransportError"]
