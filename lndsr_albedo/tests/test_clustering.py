"""
Tests for surface classification and class statistics.
"""

import numpy as np
import pytest
import xarray as xr

from lndsr_albedo.core.brdf_table import CLASS_FILL_VALUE, ClassBRDFTable
from lndsr_albedo.utils.clustering import SurfaceClassifier


@pytest.fixture
def two_surface_scene():
    """
    6-band 10x10 scene: left half dark water-like, right half vegetation-like.

    Pixel (0, 0) is invalid.
    """
    rng = np.random.default_rng(7)
    dark = np.array([0.03, 0.04, 0.03, 0.02, 0.01, 0.01])
    vegetation = np.array([0.04, 0.07, 0.05, 0.35, 0.20, 0.10])

    data = np.empty((6, 10, 10))
    data[:, :, :5] = dark[:, None, None]
    data[:, :, 5:] = vegetation[:, None, None]
    data += rng.normal(0.0, 0.002, data.shape)
    data[:, 0, 0] = np.nan

    return xr.DataArray(
        data,
        dims=['band', 'y', 'x'],
        coords={'band': np.arange(1, 7), 'y': np.arange(10), 'x': np.arange(10)},
    )


class TestClassifySurfaces:
    """Tests for K-means classification."""

    def test_two_classes(self, two_surface_scene):
        classifier = SurfaceClassifier()
        class_map = classifier.classify_surfaces(two_surface_scene, n_clusters=2)

        assert class_map.dims == ('y', 'x')
        left = np.unique(class_map.values[1:, :5])
        right = np.unique(class_map.values[:, 5:])
        assert left.size == 1
        assert right.size == 1
        assert left[0] != right[0]
        assert set(np.unique(class_map.values)) == {0, 1, CLASS_FILL_VALUE}

    def test_invalid_pixel_filled(self, two_surface_scene):
        class_map = SurfaceClassifier().classify_surfaces(two_surface_scene, n_clusters=2)
        assert class_map.values[0, 0] == CLASS_FILL_VALUE
        assert class_map.attrs['valid_pixels'] == 99

    def test_too_few_pixels(self, two_surface_scene):
        with pytest.raises(ValueError):
            SurfaceClassifier().classify_surfaces(two_surface_scene.isel(y=[1], x=[1]), n_clusters=2)

    def test_wrong_dims(self, two_surface_scene):
        with pytest.raises(ValueError):
            SurfaceClassifier().classify_surfaces(two_surface_scene.isel(y=0), n_clusters=2)


class TestClassStatistics:
    """Tests for class centroids and purity."""

    def test_centroids_and_purity(self, two_surface_scene):
        classifier = SurfaceClassifier()
        class_map = classifier.classify_surfaces(two_surface_scene, n_clusters=2)
        stats = classifier.class_statistics(two_surface_scene, class_map, n_classes=2)

        veg_class = int(class_map.values[5, 7])
        assert stats.centroids.dims == ('class', 'band')
        np.testing.assert_allclose(
            stats.centroids.sel({'class': veg_class}).values,
            [0.04, 0.07, 0.05, 0.35, 0.20, 0.10],
            atol=0.002
        )
        assert int(stats.counts.sum()) == 99
        # Tight, well separated clusters: every pixel is pure
        np.testing.assert_array_equal(stats.purity.values, stats.counts.values)

    def test_empty_class(self, two_surface_scene):
        classifier = SurfaceClassifier()
        class_map = classifier.classify_surfaces(two_surface_scene, n_clusters=2)
        stats = classifier.class_statistics(two_surface_scene, class_map, n_classes=3)

        assert int(stats.counts.values[2]) == 0
        assert int(stats.purity.values[2]) == 0
        assert np.all(np.isnan(stats.centroids.values[2]))

    def test_ambiguous_pixels_not_pure(self):
        data = np.array([[[0.0, 0.1, 0.5, 0.9, 1.0]]])
        reflectance = xr.DataArray(data, dims=['band', 'y', 'x'])
        class_map = xr.DataArray(np.array([[0, 0, 0, 1, 1]]), dims=['y', 'x'])

        stats = SurfaceClassifier(purity_ratio=0.5).class_statistics(reflectance, class_map, n_classes=2)

        # Centroids 0.2 and 0.95; the pixel at 0.5 is not much closer to its own
        assert stats.purity.values.tolist() == [2, 2]
        assert stats.counts.values.tolist() == [3, 2]

    def test_feeds_brdf_table(self, two_surface_scene):
        classifier = SurfaceClassifier()
        class_map = classifier.classify_surfaces(two_surface_scene, n_clusters=2)
        stats = classifier.class_statistics(two_surface_scene, class_map, n_classes=2)

        params = np.zeros((2, 7, 3))
        params[:, 1:] = [300, 100, 35]
        params[1, 0] = [250, 60, 20]
        table = ClassBRDFTable.from_arrays(params, stats.purity.values, centroids=stats.centroids.values)

        assert table.closest_class(0, 0) == 1
        assert table.purity_of(0) == int(stats.purity.values[0])

    def test_chunked_distances(self, two_surface_scene):
        classifier = SurfaceClassifier()
        class_map = classifier.classify_surfaces(two_surface_scene, n_clusters=2)
        whole = classifier.class_statistics(two_surface_scene, class_map, n_classes=2)

        chunked = SurfaceClassifier(chunk_size=7).class_statistics(two_surface_scene, class_map, n_classes=2)

        np.testing.assert_array_equal(chunked.purity.values, whole.purity.values)
