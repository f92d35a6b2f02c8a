"""HTTP client for calgate."""

from calgate.client.viewer_client import ViewerClient

__all__ = ["ViewerClient"]
