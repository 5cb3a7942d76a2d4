"""
Sun and view geometry for BRDF kernel evaluation.

Converts the per-pixel solar/view angles (degrees) into the radians,
relative azimuth and phase angle the kernels are written in.
"""

import logging
from typing import NamedTuple

import numpy as np


class KernelGeometry(NamedTuple):
    """Solar zenith, view zenith and relative azimuth in radians."""

    theta_s: float
    theta_v: float
    phi: float


class GeometryCalculator:
    """
    Calculator for sun and view geometry angles.

    This class provides methods to compute the angles needed for BRDF
    calculations:
    - Relative azimuth between sun and view directions
    - Phase angle between illumination and view directions
    - Validated kernel geometry from degree inputs
    """

    def __init__(self, max_zenith: float = 90.0):
        self.max_zenith = max_zenith
        self.logger = logging.getLogger(__name__)

    def compute_phase_angle(
        self,
        theta_s: np.ndarray,
        theta_v: np.ndarray,
        phi: np.ndarray
    ) -> np.ndarray:
        """
        Compute phase angle from sun/view geometry.

        Parameters
        ----------
        theta_s : np.ndarray
            Solar zenith angle in radians
        theta_v : np.ndarray
            View zenith angle in radians
        phi : np.ndarray
            Relative azimuth angle in radians

        Returns
        -------
        np.ndarray
            Phase angle in radians
        """
        cos_phase = (np.cos(theta_s) * np.cos(theta_v) +
                     np.sin(theta_s) * np.sin(theta_v) * np.cos(phi))

        # Rounding can push cos_phase just outside [-1, 1]
        cos_phase = np.clip(cos_phase, -1.0, 1.0)

        return np.arccos(cos_phase)

    def normalize_azimuth(
        self,
        azimuth: np.ndarray,
        to_positive: bool = True
    ) -> np.ndarray:
        """
        Normalize azimuth angles to [0, 2π] or [-π, π] range.

        Parameters
        ----------
        azimuth : np.ndarray
            Azimuth angles in radians
        to_positive : bool, optional
            If True, normalize to [0, 2π], else to [-π, π]

        Returns
        -------
        np.ndarray
            Normalized azimuth angles
        """
        if to_positive:
            azimuth = np.mod(azimuth, 2 * np.pi)
        else:
            azimuth = np.mod(azimuth + np.pi, 2 * np.pi) - np.pi

        return azimuth

    def compute_relative_azimuth(
        self,
        phi_s: np.ndarray,
        phi_v: np.ndarray
    ) -> np.ndarray:
        """
        Compute relative azimuth angle between sun and view directions.

        Parameters
        ----------
        phi_s : np.ndarray
            Solar azimuth angle in radians
        phi_v : np.ndarray
            View azimuth angle in radians

        Returns
        -------
        np.ndarray
            Relative azimuth angle in radians [0, π]
        """
        phi_rel = np.abs(
            self.normalize_azimuth(phi_s) - self.normalize_azimuth(phi_v)
        )

        # Take the acute angle (≤ π)
        return np.where(phi_rel > np.pi, 2 * np.pi - phi_rel, phi_rel)

    def is_valid_zenith(self, zenith_deg: float) -> bool:
        """Zenith angle in degrees within [0, max_zenith)."""
        return bool(np.isfinite(zenith_deg) and 0.0 <= zenith_deg < self.max_zenith)

    def kernel_geometry(
        self,
        sza: float,
        saa: float,
        vza: float,
        vaa: float
    ) -> KernelGeometry:
        """
        Convert pixel angles in degrees to kernel geometry in radians.

        Parameters
        ----------
        sza, saa : float
            Solar zenith and azimuth in degrees
        vza, vaa : float
            View zenith and azimuth in degrees

        Returns
        -------
        KernelGeometry
            (theta_s, theta_v, phi) in radians

        Raises
        ------
        ValueError
            If an angle is not finite or a zenith lies outside [0, max_zenith)
        """
        angles = np.array([sza, saa, vza, vaa], dtype=np.float64)
        if not np.all(np.isfinite(angles)):
            raise ValueError(f"Non-finite geometry: {angles.tolist()}")
        if not (self.is_valid_zenith(sza) and self.is_valid_zenith(vza)):
            raise ValueError(
                f"Zenith angles must be in [0, {self.max_zenith}): sza={sza}, vza={vza}"
            )

        theta_s, phi_s, theta_v, phi_v = np.radians(angles)
        phi = float(self.compute_relative_azimuth(phi_s, phi_v))

        return KernelGeometry(float(theta_s), float(theta_v), phi)
