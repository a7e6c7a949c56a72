"""
Signaling transport.
"""

from __future__ import annotations

from .client import TransportClient

__all__ = ["TransportClient"]
