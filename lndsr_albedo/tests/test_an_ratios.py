"""
Tests for RTLSR kernels and albedo-to-nadir ratios.
"""

import numpy as np
import pytest

from lndsr_albedo.core.an_ratios import ANRatioError, AlbedoNadirRatioCalculator, compute_an_ratio
from lndsr_albedo.core.brdf_kernels import BSA_POLYNOMIALS, WSA_INTEGRALS, RTLSRKernels
from lndsr_albedo.core.geometry import GeometryCalculator


class TestKernels:
    """Tests for kernel values."""

    kernels = RTLSRKernels()

    def test_zero_at_nadir(self):
        assert self.kernels.volumetric(0.0, 0.0, 0.0) == pytest.approx(0.0, abs=1e-12)
        assert self.kernels.geometric(0.0, 0.0, 0.0) == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize('theta_s, theta_v, phi', [
        (0.6, 0.1, 0.8),
        (0.3, 0.9, 2.5),
        (1.0, 0.4, 0.0),
    ])
    def test_reciprocity(self, theta_s, theta_v, phi):
        assert self.kernels.volumetric(theta_s, theta_v, phi) == \
            pytest.approx(self.kernels.volumetric(theta_v, theta_s, phi))
        assert self.kernels.geometric(theta_s, theta_v, phi) == \
            pytest.approx(self.kernels.geometric(theta_v, theta_s, phi))

    def test_array_input(self):
        theta_v = np.linspace(0, 1.2, 7)
        k_vol = self.kernels.volumetric(0.5, theta_v, 0.3)
        k_geo = self.kernels.geometric(0.5, theta_v, 0.3)
        assert k_vol.shape == theta_v.shape
        assert k_geo.shape == theta_v.shape

    def test_hotspot_volumetric_peak(self):
        """Backscatter at the hotspot exceeds forward scatter."""
        hotspot = self.kernels.volumetric(0.5, 0.5, 0.0)
        forward = self.kernels.volumetric(0.5, 0.5, np.pi)
        assert hotspot > forward

    def test_black_sky_at_zero_zenith(self):
        integrals = self.kernels.black_sky_integrals(0.0)
        assert integrals == {name: coefs[0] for name, coefs in BSA_POLYNOMIALS.items()}

    @pytest.mark.parametrize('kernel, name', [('volumetric', 'f_vol'), ('geometric', 'f_geo')])
    def test_polynomial_matches_integration(self, kernel, name):
        """Lucht polynomials fit the integrals to within about 0.02."""
        theta_s = np.radians(30.0)
        numeric = self.kernels.integrate_black_sky(theta_s, kernel, epsrel=1e-3)
        assert numeric == pytest.approx(self.kernels.black_sky_integrals(theta_s)[name], abs=0.02)

    def test_unknown_kernel(self):
        with pytest.raises(ValueError):
            self.kernels.integrate_black_sky(0.5, 'snow')


class TestAlbedoNadirRatio:
    """Tests for the ratio function."""

    def test_isotropic_brdf_gives_unit_ratios(self):
        wsa, bsa = compute_an_ratio([500, 0, 0], 40.0, 120.0, 7.0, 280.0)
        assert wsa == pytest.approx(1.0)
        assert bsa == pytest.approx(1.0)

    def test_nadir_ratios(self):
        wsa, bsa = compute_an_ratio([1000, 0, 500], 0.0, 0.0, 0.0, 0.0)

        expected_wsa = (1000 + 500 * WSA_INTEGRALS['f_geo']) / 1000
        expected_bsa = (1000 + 500 * BSA_POLYNOMIALS['f_geo'][0]) / 1000
        assert wsa == pytest.approx(expected_wsa)
        assert bsa == pytest.approx(expected_bsa)

    def test_scale_invariant(self):
        scaled = compute_an_ratio([350, 120, 40], 35.0, 150.0, 5.0, 100.0)
        unscaled = compute_an_ratio([0.35, 0.12, 0.04], 35.0, 150.0, 5.0, 100.0)
        assert scaled == pytest.approx(unscaled)

    def test_azimuth_symmetry(self):
        """Only the relative azimuth matters."""
        a = compute_an_ratio([350, 120, 40], 35.0, 150.0, 5.0, 100.0)
        b = compute_an_ratio([350, 120, 40], 35.0, 10.0, 5.0, 320.0)
        assert a == pytest.approx(b)

    def test_callable_calculator(self):
        calculator = AlbedoNadirRatioCalculator(geometry_calc=GeometryCalculator())
        assert calculator([350, 120, 40], 35.0, 150.0, 5.0, 100.0) == \
            pytest.approx(compute_an_ratio([350, 120, 40], 35.0, 150.0, 5.0, 100.0))

    @pytest.mark.parametrize('sza, vza', [(90.0, 5.0), (-1.0, 5.0), (35.0, 95.0), (np.nan, 5.0)])
    def test_invalid_geometry(self, sza, vza):
        with pytest.raises(ANRatioError):
            compute_an_ratio([350, 120, 40], sza, 150.0, vza, 100.0)

    def test_zero_reflectance_fails(self):
        with pytest.raises(ANRatioError):
            compute_an_ratio([0, 0, 0], 35.0, 150.0, 5.0, 100.0)

    @pytest.mark.parametrize('brdf', [[350, 120], [350, np.inf, 40]])
    def test_invalid_parameters(self, brdf):
        with pytest.raises(ANRatioError):
            compute_an_ratio(brdf, 35.0, 150.0, 5.0, 100.0)

    def test_is_runtime_error(self):
        assert issubclass(ANRatioError, RuntimeError)


class TestGeometry:
    """Tests for geometry conversion."""

    geometry = GeometryCalculator()

    def test_relative_azimuth_wraps(self):
        phi = self.geometry.compute_relative_azimuth(np.radians(350.0), np.radians(10.0))
        assert np.degrees(phi) == pytest.approx(20.0)

    def test_relative_azimuth_range(self):
        phi_s = np.radians(np.arange(0, 360, 15))
        phi = self.geometry.compute_relative_azimuth(phi_s, np.radians(200.0))
        assert np.all((phi >= 0) & (phi <= np.pi))

    def test_kernel_geometry_radians(self):
        theta_s, theta_v, phi = self.geometry.kernel_geometry(30.0, 100.0, 10.0, 40.0)
        assert theta_s == pytest.approx(np.pi / 6)
        assert theta_v == pytest.approx(np.radians(10.0))
        assert phi == pytest.approx(np.radians(60.0))

    def test_phase_angle_at_hotspot(self):
        assert self.geometry.compute_phase_angle(0.4, 0.4, 0.0) == pytest.approx(0.0, abs=1e-7)

    def test_kernel_geometry_rejects_horizon(self):
        with pytest.raises(ValueError):
            self.geometry.kernel_geometry(90.0, 0.0, 0.0, 0.0)
