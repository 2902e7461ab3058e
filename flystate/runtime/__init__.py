"""
Runtime helpers consumed by state lifecycles.
"""

from .follow import FollowHandler

__all__ = ["FollowHandler"]
