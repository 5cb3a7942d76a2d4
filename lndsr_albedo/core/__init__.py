"""
Core albedo algorithm.

This package contains the algorithmic components:
- Sensor configuration and narrow-to-broadband coefficients
- RTLSR BRDF kernels and albedo-to-nadir ratios
- Class BRDF table with closest-class lookup
- The per-pixel albedo engine
"""

from .albedo import AlbedoEngine, compute_pixel_albedo

__all__ = ["AlbedoEngine", "compute_pixel_albedo"]
