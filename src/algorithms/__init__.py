"""
Template location algorithms: correlation, rotation probes and the angular search.
"""

from .template_locator import compute_crop_region, locate

__all__ = ["compute_crop_region", "locate"]
