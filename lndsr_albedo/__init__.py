"""
Landsat / Sentinel-2 Surface Albedo

Per-pixel spectral and broadband black-sky/white-sky albedo from surface
reflectance, class-level MODIS BRDF shapes and narrow-to-broadband
regression coefficients (Shuai et al., 2011).
"""

__version__ = "1.0.0"
__license__ = "GPL-3.0"

from .core.albedo import AlbedoEngine, AlbedoResult, PixelRejected, QAFlag, compute_pixel_albedo
from .core.an_ratios import ANRatioError, compute_an_ratio
from .core.brdf_table import ClassBRDFTable
from .core.coefficients import Instrument
from .core.sensor import PixelObservation, SensorConfig

__all__ = [
    "AlbedoEngine",
    "AlbedoResult",
    "ANRatioError",
    "ClassBRDFTable",
    "Instrument",
    "PixelObservation",
    "PixelRejected",
    "QAFlag",
    "SensorConfig",
    "compute_an_ratio",
    "compute_pixel_albedo",
    "__version__",
]
