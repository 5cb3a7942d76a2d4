"""
Surface classification and class statistics.

K-means clustering of surface reflectance into spectrally homogeneous
land-cover classes, and the per-class mean spectra and pure-pixel counts
used by the class BRDF table.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import xarray as xr
from scipy.spatial.distance import cdist
from sklearn.cluster import KMeans
from sklearn.preprocessing import StandardScaler

from ..core.brdf_table import CLASS_FILL_VALUE


@dataclass
class ClassStatistics:
    """Mean spectrum and pure-pixel count per class."""

    centroids: xr.DataArray
    purity: xr.DataArray
    counts: xr.DataArray


class SurfaceClassifier:
    """
    Surface classification using K-means clustering.

    Parameters
    ----------
    random_state : int, optional
        Random state for reproducible results
    fill_value : int, optional
        Class value written for pixels with invalid reflectance
    purity_ratio : float, optional
        A pixel is pure when its distance to its own centroid is at most
        this fraction of the distance to the second-nearest centroid
    chunk_size : int, optional
        Pixels per block when computing centroid distances
    """

    def __init__(
        self,
        random_state: int = 99,
        fill_value: int = CLASS_FILL_VALUE,
        purity_ratio: float = 0.5,
        chunk_size: int = 1_000_000
    ):
        self.random_state = random_state
        self.fill_value = fill_value
        self.purity_ratio = purity_ratio
        self.chunk_size = chunk_size
        self.logger = logging.getLogger(__name__)
        self.scaler = StandardScaler()

    def classify_surfaces(
        self,
        reflectance: xr.DataArray,
        n_clusters: int = 8,
        max_iter: int = 1000,
        n_init: int = 10,
        standardize: bool = True
    ) -> xr.DataArray:
        """
        Perform K-means clustering on surface reflectance data.

        Parameters
        ----------
        reflectance : xr.DataArray
            Reflectance stack with dims ('band', 'y', 'x'); NaN marks
            invalid values
        n_clusters : int, optional
            Number of clusters
        max_iter : int, optional
            Maximum number of iterations
        n_init : int, optional
            Number of initializations
        standardize : bool, optional
            Whether to standardize data before clustering

        Returns
        -------
        xr.DataArray
            0-based class map with dims ('y', 'x')
        """
        self.logger.info(f"Performing K-means clustering with {n_clusters} clusters...")

        features, valid_mask = self._prepare_features(reflectance)
        shape = (reflectance.sizes['y'], reflectance.sizes['x'])

        if features.shape[0] < n_clusters:
            raise ValueError(
                f"Not enough valid pixels ({features.shape[0]}) for {n_clusters} clusters"
            )

        if standardize:
            features = self.scaler.fit_transform(features)

        kmeans = KMeans(
            n_clusters=n_clusters,
            max_iter=max_iter,
            n_init=n_init,
            random_state=self.random_state,
            algorithm='lloyd'
        )
        labels = kmeans.fit_predict(features)

        classes = np.full(valid_mask.shape, self.fill_value, dtype=np.int32)
        classes[valid_mask] = labels
        classes = classes.reshape(shape)

        return xr.DataArray(
            classes,
            dims=['y', 'x'],
            coords={'y': reflectance.y, 'x': reflectance.x} if 'y' in reflectance.coords else None,
            attrs={
                'long_name': 'Surface classification',
                'description': 'K-means cluster labels',
                'n_clusters': n_clusters,
                'fill_value': self.fill_value,
                'inertia': float(kmeans.inertia_),
                'valid_pixels': int(valid_mask.sum()),
            }
        )

    def _prepare_features(self, reflectance: xr.DataArray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Flatten a (band, y, x) stack into a (pixels, bands) feature matrix.

        Returns
        -------
        tuple
            (features of valid pixels, valid mask over all pixels)
        """
        if set(reflectance.dims) != {'band', 'y', 'x'}:
            raise ValueError(f"Expected dims ('band', 'y', 'x'), got {reflectance.dims}")

        stacked = reflectance.transpose('y', 'x', 'band').values
        features = stacked.reshape(-1, stacked.shape[-1]).astype(np.float64)
        valid_mask = np.all(np.isfinite(features), axis=1)

        return features[valid_mask], valid_mask

    def class_statistics(
        self,
        reflectance: xr.DataArray,
        class_map: xr.DataArray,
        n_classes: int
    ) -> ClassStatistics:
        """
        Mean spectrum and pure-pixel count of each class.

        Parameters
        ----------
        reflectance : xr.DataArray
            Reflectance stack with dims ('band', 'y', 'x')
        class_map : xr.DataArray
            Class map from :meth:`classify_surfaces`
        n_classes : int
            Number of classes (0 .. n_classes - 1)

        Returns
        -------
        ClassStatistics
            Centroids (class, band), purity counts and pixel counts (class)
        """
        features, valid_mask = self._prepare_features(reflectance)
        labels = class_map.values.reshape(-1)[valid_mask]

        in_range = (labels >= 0) & (labels < n_classes)
        features = features[in_range]
        labels = labels[in_range].astype(np.int64)

        n_spectral = features.shape[1]
        counts = np.bincount(labels, minlength=n_classes)

        centroids = np.full((n_classes, n_spectral), np.nan)
        for icls in np.flatnonzero(counts):
            centroids[icls] = features[labels == icls].mean(axis=0)

        purity = self._purity_counts(features, labels, centroids, n_classes)

        class_coord = np.arange(n_classes)
        band_coord = reflectance.band.values if 'band' in reflectance.coords else np.arange(n_spectral)

        self.logger.info(f"Class statistics for {n_classes} classes, {labels.size} pixels")

        return ClassStatistics(
            centroids=xr.DataArray(
                centroids, dims=['class', 'band'],
                coords={'class': class_coord, 'band': band_coord},
                attrs={'long_name': 'Class mean reflectance'}
            ),
            purity=xr.DataArray(
                purity, dims=['class'], coords={'class': class_coord},
                attrs={'long_name': 'Pure pixel count', 'purity_ratio': self.purity_ratio}
            ),
            counts=xr.DataArray(
                counts, dims=['class'], coords={'class': class_coord},
                attrs={'long_name': 'Pixel count'}
            ),
        )

    def _purity_counts(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        centroids: np.ndarray,
        n_classes: int
    ) -> np.ndarray:
        """Count pixels much closer to their own centroid than to any other."""
        populated = np.flatnonzero(np.all(np.isfinite(centroids), axis=1))
        purity = np.zeros(n_classes, dtype=np.int64)

        if populated.size < 2:
            # A single class has no competing centroid
            purity[populated] = np.bincount(labels, minlength=n_classes)[populated]
            return purity

        own = np.empty(labels.size)
        second = np.empty(labels.size)
        own_index = np.searchsorted(populated, labels)

        for start in range(0, labels.size, self.chunk_size):
            stop = min(start + self.chunk_size, labels.size)
            distances = cdist(features[start:stop], centroids[populated], metric='euclidean')

            rows = np.arange(stop - start)
            own[start:stop] = distances[rows, own_index[start:stop]]
            distances[rows, own_index[start:stop]] = np.inf
            second[start:stop] = distances.min(axis=1)

        pure = own <= self.purity_ratio * second
        np.add.at(purity, labels[pure], 1)

        return purity
