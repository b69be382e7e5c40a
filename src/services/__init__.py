"""
Service Layer - Business logic layer between routers and algorithms.

Services resolve images from their sources, apply call policies such as
timeouts, and provide a clean interface for routers and pipelines.
"""

from .locator_service import (
    FixedOrientation,
    ImageSource,
    InMemoryImageSource,
    LocatorService,
    NamedResult,
    OrientationSource,
)

__all__ = [
    "FixedOrientation",
    "ImageSource",
    "InMemoryImageSource",
    "LocatorService",
    "NamedResult",
    "OrientationSource",
]
