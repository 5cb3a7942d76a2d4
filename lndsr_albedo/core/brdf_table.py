"""
Per-class BRDF parameter table.

Holds the RTLSR kernel weights fitted for each land-cover class and MODIS
band, the purity count of each class fit, and the class mean spectra used
to borrow a fit from the spectrally closest class when a class has none.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import xarray as xr
from scipy.spatial.distance import cdist


KERNEL_NAMES = ['f_iso', 'f_vol', 'f_geo']

# Pure pixels (top 15% of a 100-bin histogram) needed for a high-confidence fit
PURE_PIXEL_THRESHOLD = 15

CLASS_FILL_VALUE = 255


class ClassBRDFTable:
    """
    Read-only BRDF lookup table indexed by land-cover class.

    Parameters
    ----------
    params : xr.DataArray
        Kernel weights with dims ('class', 'band', 'kernel'); (0, 0, 0)
        or NaN means no fit for that class and band
    purity : xr.DataArray
        Pure-pixel count per class, dims ('class',)
    centroids : xr.DataArray, optional
        Class mean spectra with dims ('class', 'band'), used by
        :meth:`closest_class`
    fill_value : int, optional
        Class value marking unclassified pixels
    purity_threshold : int, optional
        Purity count separating high-confidence from borderline fits
    """

    def __init__(
        self,
        params: xr.DataArray,
        purity: xr.DataArray,
        centroids: Optional[xr.DataArray] = None,
        fill_value: int = CLASS_FILL_VALUE,
        purity_threshold: int = PURE_PIXEL_THRESHOLD
    ):
        self.logger = logging.getLogger(__name__)

        if tuple(params.dims) != ('class', 'band', 'kernel'):
            params = params.transpose('class', 'band', 'kernel')
        if params.sizes['kernel'] != 3:
            raise ValueError(f"Expected 3 kernel weights, got {params.sizes['kernel']}")
        if purity.sizes.get('class') != params.sizes['class']:
            raise ValueError("purity must have one entry per class")

        self.params = params.fillna(0.0)
        # No purity count means no pure pixels
        self.purity = purity.fillna(0)
        self.centroids = centroids
        self.fill_value = fill_value
        self.purity_threshold = purity_threshold

        # Plain arrays for per-pixel lookups
        self._params = self.params.values.astype(np.float64)
        self._purity = self.purity.values.astype(np.float64)
        self._fitted = np.any(self._params != 0, axis=2)
        self._distances = self._class_distances(centroids)

        self.logger.info(
            f"BRDF table: {self.n_classes} classes, {self.n_bands} bands, "
            f"{int(self._fitted.sum())} fitted class/band pairs"
        )

    @classmethod
    def from_arrays(
        cls,
        params: np.ndarray,
        purity: Sequence[int],
        centroids: Optional[np.ndarray] = None,
        **kwargs
    ) -> "ClassBRDFTable":
        """
        Build a table from plain arrays.

        Parameters
        ----------
        params : np.ndarray
            Array of shape (n_classes, n_bands, 3)
        purity : sequence
            Pure-pixel count per class
        centroids : np.ndarray, optional
            Class mean spectra of shape (n_classes, n_spectral_bands)
        """
        params = np.asarray(params, dtype=np.float64)
        n_classes = params.shape[0]
        class_coord = np.arange(n_classes)

        params_da = xr.DataArray(
            params,
            dims=['class', 'band', 'kernel'],
            coords={'class': class_coord, 'band': np.arange(params.shape[1]), 'kernel': KERNEL_NAMES},
            attrs={'long_name': 'RTLSR kernel weights'}
        )
        purity_da = xr.DataArray(
            np.asarray(purity), dims=['class'], coords={'class': class_coord},
            attrs={'long_name': 'Pure pixel count'}
        )

        centroids_da = None
        if centroids is not None:
            centroids = np.asarray(centroids, dtype=np.float64)
            centroids_da = xr.DataArray(
                centroids,
                dims=['class', 'band'],
                coords={'class': class_coord, 'band': np.arange(centroids.shape[1])},
                attrs={'long_name': 'Class mean reflectance'}
            )

        return cls(params_da, purity_da, centroids_da, **kwargs)

    def _class_distances(self, centroids: Optional[xr.DataArray]) -> Optional[np.ndarray]:
        if centroids is None:
            self.logger.warning("No class centroids, closest-class lookup disabled")
            return None
        if centroids.sizes['class'] != self.n_classes:
            raise ValueError("centroids must have one spectrum per class")

        spectra = centroids.transpose('class', 'band').values.astype(np.float64)
        return cdist(spectra, spectra, metric='euclidean')

    @property
    def n_classes(self) -> int:
        return self._params.shape[0]

    @property
    def n_bands(self) -> int:
        return self._params.shape[1]

    @property
    def max_class(self) -> int:
        return self.n_classes - 1

    def is_valid_class(self, icls: int) -> bool:
        """Class index is neither the fill value nor outside [0, max_class]."""
        return icls != self.fill_value and 0 <= icls <= self.max_class

    def has_fit(self, icls: int, band: int) -> bool:
        return bool(self._fitted[icls, band])

    def kernel_params(self, icls: int, band: int) -> np.ndarray:
        return self._params[icls, band].copy()

    def purity_of(self, icls: int) -> float:
        return float(self._purity[icls])

    def check_band_map(self, band_index_map: Sequence[int]):
        """
        Check that every mapped band lies inside the table.

        Raises
        ------
        ValueError
            If a band index is negative or beyond the last table band
        """
        for band in band_index_map:
            if not 0 <= band < self.n_bands:
                raise ValueError(
                    f"band_index_map refers to band {band}, table has {self.n_bands} bands"
                )

    def closest_class(self, icls: int, band: int) -> Optional[int]:
        """
        Spectrally closest class that has a BRDF fit for ``band``.

        Parameters
        ----------
        icls : int
            Class lacking a fit
        band : int
            BRDF table band index

        Returns
        -------
        int or None
            Nearest fitted class (lowest index on ties), or None if there
            is no candidate
        """
        if self._distances is None:
            return None

        candidates = np.flatnonzero(self._fitted[:, band])
        candidates = candidates[(candidates != icls) & (candidates != self.fill_value)]
        if candidates.size == 0:
            return None

        # Classes without a mean spectrum are never chosen
        distances = np.nan_to_num(self._distances[icls, candidates], nan=np.inf)
        if not np.any(np.isfinite(distances)):
            return None

        # argmin returns the first minimum, i.e. the lowest class index
        return int(candidates[np.argmin(distances)])
