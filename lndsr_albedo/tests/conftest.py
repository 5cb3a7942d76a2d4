"""
Pytest configuration and shared fixtures for albedo tests.
"""

import numpy as np
import pytest

from lndsr_albedo.core.brdf_table import ClassBRDFTable
from lndsr_albedo.core.coefficients import Instrument
from lndsr_albedo.core.sensor import PixelObservation, SensorConfig


N_MODIS_BANDS = 7


@pytest.fixture
def tm_sensor():
    """Landsat TM, six reflective bands, LEDAPS scaling."""
    return SensorConfig(instrument=Instrument.TM)


@pytest.fixture
def oli_sensor():
    return SensorConfig(instrument=Instrument.OLI)


@pytest.fixture
def typical_reflectance():
    """Vegetation-like stored reflectance (scale 1e-4) in sensor band order."""
    return [400, 700, 500, 3500, 2000, 1000]


@pytest.fixture
def typical_geometry():
    """Typical sun and viewing geometry in degrees."""
    return {
        'sza': 35.0,
        'saa': 150.0,
        'vza': 5.0,
        'vaa': 100.0,
    }


@pytest.fixture
def make_observation(typical_geometry, typical_reflectance):
    """Factory for pixel observations with typical geometry."""
    def _make(land_cover=0, reflectance=None, **angles):
        geometry = dict(typical_geometry, **angles)
        return PixelObservation(
            land_cover=land_cover,
            reflectance=typical_reflectance if reflectance is None else reflectance,
            **geometry
        )
    return _make


@pytest.fixture
def class_params():
    """
    Kernel weights (scaled by 1000) for four classes over 7 MODIS bands.

    Class 3 has no fit in MODIS band 0 (the sensor's red band).
    """
    params = np.zeros((4, N_MODIS_BANDS, 3))
    params[0] = [350, 120, 40]
    params[1] = [120, 30, 15]
    params[2] = [300, 100, 35]
    params[3] = [320, 110, 30]
    params[3, 0] = 0
    return params


@pytest.fixture
def class_centroids():
    """Class mean spectra; class 3 is closest to class 2."""
    return np.array([
        [0.04, 0.07, 0.05, 0.35, 0.20, 0.10],
        [0.02, 0.03, 0.03, 0.08, 0.05, 0.03],
        [0.05, 0.08, 0.06, 0.30, 0.22, 0.12],
        [0.05, 0.08, 0.07, 0.31, 0.22, 0.12],
    ])


@pytest.fixture
def brdf_table(class_params, class_centroids):
    """All classes above the purity threshold."""
    return ClassBRDFTable.from_arrays(class_params, purity=[40, 40, 40, 40], centroids=class_centroids)


@pytest.fixture
def unit_ratio():
    """Angular-normalization ratio of exactly 1.0 for both skies."""
    def _ratio(brdf, sza, saa, vza, vaa):
        return 1.0, 1.0
    return _ratio


def constant_ratio(wsa, bsa):
    """Ratio function returning fixed (wsa, bsa) ratios."""
    def _ratio(brdf, sza, saa, vza, vaa):
        return wsa, bsa
    return _ratio


# Tolerance values for numerical comparisons
ALBEDO_ATOL = 1e-12
