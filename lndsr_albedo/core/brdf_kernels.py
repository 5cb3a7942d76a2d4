"""
RTLSR (Ross-Thick Li-Sparse-Reciprocal) BRDF kernels.

Kernel values at a given sun/view geometry and their hemispherical
integrals, as used by the MODIS BRDF/albedo product.

Based on:
- Roujean et al. (1992) - Kernel-driven models
- Wanner et al. (1995) - Derivation of the Ross and Li kernels
- Lucht et al. (2000) - Albedo retrieval from semiempirical BRDF models
"""

import logging
from typing import Dict

import numpy as np
from scipy import integrate

from .geometry import GeometryCalculator


# Lucht et al. (2000) black-sky polynomial g0 + g1*θ² + g2*θ³ (θ in radians)
BSA_POLYNOMIALS: Dict[str, tuple] = {
    'f_iso': (1.0, 0.0, 0.0),
    'f_vol': (-0.007574, -0.070987, 0.307588),
    'f_geo': (-1.284909, -0.166314, 0.041840),
}

# Bihemispherical (white-sky) kernel integrals
WSA_INTEGRALS: Dict[str, float] = {
    'f_iso': 1.0,
    'f_vol': 0.189184,
    'f_geo': -1.377622,
}


class RTLSRKernels:
    """
    Ross-Thick volumetric and Li-Sparse-Reciprocal geometric kernels.

    Parameters
    ----------
    geometry_calc : GeometryCalculator, optional
        Geometry calculator used for the phase angle
    b_r : float, optional
        Crown relative shape b/r (MODIS: 1.0)
    h_b : float, optional
        Crown relative height h/b (MODIS: 2.0)
    """

    def __init__(
        self,
        geometry_calc: GeometryCalculator = None,
        b_r: float = 1.0,
        h_b: float = 2.0
    ):
        self.geometry_calc = geometry_calc or GeometryCalculator()
        self.b_r = b_r
        self.h_b = h_b
        self.logger = logging.getLogger(__name__)

    def volumetric(self, theta_s, theta_v, phi):
        """
        Ross-Thick volumetric kernel.

        Parameters
        ----------
        theta_s, theta_v, phi : float or np.ndarray
            Solar zenith, view zenith and relative azimuth in radians

        Returns
        -------
        float or np.ndarray
            Volumetric kernel values
        """
        phase = self.geometry_calc.compute_phase_angle(theta_s, theta_v, phi)
        cos_phase = np.cos(phase)

        return ((np.pi / 2 - phase) * cos_phase + np.sin(phase)) / \
            (np.cos(theta_s) + np.cos(theta_v)) - np.pi / 4

    def geometric(self, theta_s, theta_v, phi):
        """
        Li-Sparse-Reciprocal geometric kernel.

        Parameters
        ----------
        theta_s, theta_v, phi : float or np.ndarray
            Solar zenith, view zenith and relative azimuth in radians

        Returns
        -------
        float or np.ndarray
            Geometric kernel values
        """
        # Equivalent angles for non-spherical crowns
        theta_s_p = np.arctan(self.b_r * np.tan(theta_s))
        theta_v_p = np.arctan(self.b_r * np.tan(theta_v))
        tan_s, tan_v = np.tan(theta_s_p), np.tan(theta_v_p)
        sec_s, sec_v = 1 / np.cos(theta_s_p), 1 / np.cos(theta_v_p)

        distance_sq = tan_s ** 2 + tan_v ** 2 - 2 * tan_s * tan_v * np.cos(phi)
        distance_sq = np.maximum(distance_sq, 0.0)

        cos_t = self.h_b * np.sqrt(distance_sq + (tan_s * tan_v * np.sin(phi)) ** 2) / \
            (sec_s + sec_v)
        cos_t = np.clip(cos_t, -1.0, 1.0)
        t = np.arccos(cos_t)

        overlap = (1 / np.pi) * (t - np.sin(t) * cos_t) * (sec_s + sec_v)

        cos_phase_p = (np.cos(theta_s_p) * np.cos(theta_v_p) +
                       np.sin(theta_s_p) * np.sin(theta_v_p) * np.cos(phi))

        return overlap - sec_s - sec_v + 0.5 * (1 + cos_phase_p) * sec_s * sec_v

    def reflectance(self, params, theta_s, theta_v, phi):
        """
        BRDF-modelled reflectance f_iso + f_vol*K_vol + f_geo*K_geo.

        Parameters
        ----------
        params : sequence
            (f_iso, f_vol, f_geo) kernel weights
        theta_s, theta_v, phi : float
            Geometry in radians
        """
        f_iso, f_vol, f_geo = params
        return (f_iso +
                f_vol * self.volumetric(theta_s, theta_v, phi) +
                f_geo * self.geometric(theta_s, theta_v, phi))

    def black_sky_integrals(self, theta_s) -> Dict[str, float]:
        """
        Black-sky kernel integrals at a solar zenith angle (radians).

        Returns
        -------
        dict
            Integral per kernel weight name, from the Lucht polynomials
        """
        return {
            name: g0 + g1 * theta_s ** 2 + g2 * theta_s ** 3
            for name, (g0, g1, g2) in BSA_POLYNOMIALS.items()
        }

    def white_sky_integrals(self) -> Dict[str, float]:
        """Bihemispherical kernel integrals."""
        return dict(WSA_INTEGRALS)

    def black_sky_albedo(self, params, theta_s) -> float:
        integrals = self.black_sky_integrals(theta_s)
        return sum(w * integrals[name] for name, w in zip(('f_iso', 'f_vol', 'f_geo'), params))

    def white_sky_albedo(self, params) -> float:
        return sum(w * WSA_INTEGRALS[name] for name, w in zip(('f_iso', 'f_vol', 'f_geo'), params))

    def integrate_black_sky(self, theta_s: float, kernel: str, epsrel: float = 1e-4) -> float:
        """
        Numerically integrate a kernel over the viewing hemisphere.

        K_bsa(θs) = 1/π ∫∫ K(θs, θv, φ) cos θv sin θv dθv dφ

        Parameters
        ----------
        theta_s : float
            Solar zenith angle in radians
        kernel : str
            'volumetric' or 'geometric'
        epsrel : float, optional
            Relative tolerance passed to scipy

        Returns
        -------
        float
            Black-sky kernel integral
        """
        if kernel == 'volumetric':
            func = self.volumetric
        elif kernel == 'geometric':
            func = self.geometric
        else:
            raise ValueError(f"Unknown kernel type: {kernel}")

        def integrand(theta_v, phi):
            return float(func(theta_s, theta_v, phi)) * np.cos(theta_v) * np.sin(theta_v)

        value, _ = integrate.dblquad(
            integrand,
            0, 2 * np.pi,
            lambda phi: 0.0, lambda phi: np.pi / 2,
            epsrel=epsrel
        )

        return value / np.pi
