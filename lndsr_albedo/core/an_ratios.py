"""
Albedo-to-Nadir ratio calculations.

Converts a class's RTLSR kernel weights and the pixel's sun/view geometry
into the multipliers that turn a directional surface reflectance into
black-sky and white-sky albedo.

Based on Shuai et al. (2011) "An algorithm for the retrieval of 30-m
snow-free albedo from Landsat surface reflectance and MODIS BRDF".
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from .brdf_kernels import RTLSRKernels
from .geometry import GeometryCalculator


class ANRatioError(RuntimeError):
    """
    Albedo-to-nadir ratio cannot be computed.

    Signals a model/configuration inconsistency rather than a bad pixel;
    callers must abort the run instead of degrading QA.
    """


class AlbedoNadirRatioCalculator:
    """
    Calculator for Albedo-to-Nadir ratios from BRDF kernel parameters.

    BSA ratio = BSA(θs) / R(θs, θv, φ)
    WSA ratio = WSA / R(θs, θv, φ)

    where R is the BRDF-modelled reflectance at the observed geometry.
    The kernel weights may be stored with any common scale factor since it
    cancels in both ratios.

    Parameters
    ----------
    kernels : RTLSRKernels, optional
        Kernel implementation
    geometry_calc : GeometryCalculator, optional
        Geometry calculator used to validate and convert angles
    """

    def __init__(
        self,
        kernels: RTLSRKernels = None,
        geometry_calc: GeometryCalculator = None
    ):
        self.geometry_calc = geometry_calc or GeometryCalculator()
        self.kernels = kernels or RTLSRKernels(self.geometry_calc)
        self.logger = logging.getLogger(__name__)

    def __call__(
        self,
        brdf: Sequence[float],
        sza: float,
        saa: float,
        vza: float,
        vaa: float
    ) -> Tuple[float, float]:
        return self.compute_ratio(brdf, sza, saa, vza, vaa)

    def compute_ratio(
        self,
        brdf: Sequence[float],
        sza: float,
        saa: float,
        vza: float,
        vaa: float
    ) -> Tuple[float, float]:
        """
        Compute white-sky and black-sky ratios for one pixel and band.

        Parameters
        ----------
        brdf : sequence
            (f_iso, f_vol, f_geo) kernel weights
        sza, saa, vza, vaa : float
            Solar zenith/azimuth and view zenith/azimuth in degrees

        Returns
        -------
        tuple
            (wsa_ratio, bsa_ratio)

        Raises
        ------
        ANRatioError
            If the inputs are not usable or the modelled reflectance is zero
        """
        params = np.asarray(brdf, dtype=np.float64)
        if params.shape != (3,) or not np.all(np.isfinite(params)):
            raise ANRatioError(f"Invalid BRDF parameters: {brdf!r}")

        try:
            theta_s, theta_v, phi = self.geometry_calc.kernel_geometry(sza, saa, vza, vaa)
        except ValueError as e:
            raise ANRatioError(str(e)) from e

        r_omega = float(self.kernels.reflectance(params, theta_s, theta_v, phi))
        if not np.isfinite(r_omega) or r_omega == 0.0:
            raise ANRatioError(
                f"BRDF reflectance {r_omega} at sza={sza}, vza={vza} for parameters {params.tolist()}"
            )

        bsa = self.kernels.black_sky_albedo(params, theta_s)
        wsa = self.kernels.white_sky_albedo(params)

        return wsa / r_omega, bsa / r_omega


_default_calculator = AlbedoNadirRatioCalculator()


def compute_an_ratio(
    brdf: Sequence[float],
    sza: float,
    saa: float,
    vza: float,
    vaa: float
) -> Tuple[float, float]:
    """
    Albedo-to-nadir ratios with the default RTLSR kernels.

    Returns
    -------
    tuple
        (wsa_ratio, bsa_ratio)
    """
    return _default_calculator(brdf, sza, saa, vza, vaa)
