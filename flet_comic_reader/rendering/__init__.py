"""
Rendering - rasterizes pages for display.
"""

from .renderer import PageRenderer, fit_scale

__all__ = ["PageRenderer", "fit_scale"]
