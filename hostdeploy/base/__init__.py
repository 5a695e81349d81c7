"""
hostdeploy CLI Base Command Classes

Abstract base classes for consistent command structure.
"""

from .base_command import BaseCommand
from .request_command import RequestCommand

__all__ = [
    "BaseCommand",
    "RequestCommand",
]
