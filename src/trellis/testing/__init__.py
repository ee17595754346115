"""Testing utilities for trellis applications.

Usage::

    from trellis.testing import TestClient

    async with TestClient(app) as client:
        response = await client.get("/")
        assert response.status == 200
"""

from trellis.testing.client import ClientResponse, TestClient

__all__ = ["ClientResponse", "TestClient"]
