"""
Sensor configuration and per-pixel observations.

Landsat TM/ETM+, Landsat-8 OLI and Sentinel-2 MSI surface reflectance is
handled through the same six reflective bands. The BRDF table is ordered
like the MODIS land bands, so every sensor band carries an explicit
position in that table.
"""

from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

import numpy as np

from .coefficients import BroadbandCoefficients, Instrument, select_coefficients


# Sensor band -> MODIS band position in the BRDF table
#   blue  -> MODIS band 3 (index 2)
#   green -> MODIS band 4 (index 3)
#   red   -> MODIS band 1 (index 0)
#   NIR   -> MODIS band 2 (index 1)
#   SWIR1 -> MODIS band 6 (index 5)
#   SWIR2 -> MODIS band 7 (index 6)
DEFAULT_BAND_INDEX_MAP: Tuple[int, ...] = (2, 3, 0, 1, 5, 6)

MAX_REFLECTIVE_BANDS = 6


@dataclass(frozen=True)
class SensorConfig:
    """
    Sensor settings shared by every pixel of a scene.

    Parameters
    ----------
    instrument : Instrument or str
        Sensor instrument (TM, ETM, OLI or MSI)
    n_bands : int, optional
        Number of reflective bands in use (thermal excluded)
    scale_factor : float, optional
        Converts stored reflectance to a 0-1 fraction
    fill_value : int or float, optional
        Reflectance value marking "no observation"
    band_index_map : tuple, optional
        Position of each sensor band in the BRDF table
    """

    instrument: Instrument
    n_bands: int = MAX_REFLECTIVE_BANDS
    scale_factor: float = 0.0001
    fill_value: Union[int, float] = -9999
    band_index_map: Tuple[int, ...] = field(default=DEFAULT_BAND_INDEX_MAP)

    def __post_init__(self):
        if not isinstance(self.instrument, Instrument):
            object.__setattr__(self, "instrument", Instrument.parse(str(self.instrument)))
        object.__setattr__(self, "band_index_map", tuple(int(b) for b in self.band_index_map))

        if not 1 <= self.n_bands <= MAX_REFLECTIVE_BANDS:
            raise ValueError(
                f"n_bands must be between 1 and {MAX_REFLECTIVE_BANDS}, got {self.n_bands}"
            )
        if self.scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive, got {self.scale_factor}")
        if len(self.band_index_map) < self.n_bands:
            raise ValueError(
                f"band_index_map has {len(self.band_index_map)} entries for {self.n_bands} bands"
            )
        if any(b < 0 for b in self.band_index_map):
            raise ValueError(f"band_index_map entries must be non-negative: {self.band_index_map}")

    def coefficients(self, snow: bool = False) -> BroadbandCoefficients:
        """Broadband coefficient sets for a pixel with the given snow state."""
        return select_coefficients(self.instrument, snow)

    @property
    def n_outputs(self) -> int:
        """Albedo values per pixel: (BSA, WSA) per band plus three broadband pairs."""
        return 2 * self.n_bands + 6


@dataclass(frozen=True)
class PixelObservation:
    """
    Geometry, class and reflectance of one pixel.

    Angles are in degrees. Reflectance is stored (unscaled) values in
    sensor band order.
    """

    sza: float
    saa: float
    vza: float
    vaa: float
    land_cover: int
    reflectance: Sequence[float]

    def band_reflectance(self, n_bands: int) -> np.ndarray:
        values = np.asarray(self.reflectance, dtype=np.float64)
        if values.ndim != 1 or values.shape[0] < n_bands:
            raise ValueError(
                f"Expected at least {n_bands} reflectance values, got shape {values.shape}"
            )
        return values[:n_bands].copy()
