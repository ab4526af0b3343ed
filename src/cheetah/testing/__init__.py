"""Test utilities for cheetah applications.

    from cheetah.testing import TestClient
"""

from cheetah.testing.client import TestClient

__all__ = ["TestClient"]
