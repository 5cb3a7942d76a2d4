"""
Per-pixel spectral and broadband albedo.

For each reflective band the pixel's surface reflectance is converted to
black-sky (BSA) and white-sky (WSA) albedo with the BRDF of its land-cover
class, then the spectral albedos are converted to shortwave, visible and
near-infrared broadband albedo. A QA flag records which path produced
the values:

    0  all bands used a directly fitted, high-purity BRDF
    1  all bands used a directly fitted BRDF, some with borderline purity
    2  some bands borrowed the BRDF of the spectrally closest class
    3  isotropic (Lambertian) assumption for at least one band
    4  a broadband albedo was recomputed from reflectance
   -1  pixel rejected

Based on Shuai et al. (2011) and the narrow-to-broadband conversions of
Liang (2000) and He et al. (2012).
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .an_ratios import compute_an_ratio
from .brdf_table import ClassBRDFTable
from .sensor import PixelObservation, SensorConfig


ANRatioFunction = Callable[[Sequence[float], float, float, float, float], Tuple[float, float]]
ClosestClassFunction = Callable[[int, int], Optional[int]]

# Reflectance at or above this fraction is treated as an over-correction artefact
REFLECTANCE_CAP_TRIGGER = 1.2
REFLECTANCE_CAP_VALUE = 0.99


class QAFlag(IntEnum):
    REJECTED = -1
    HIGH_PURITY = 0
    DIRECT_FIT = 1
    BORROWED_FIT = 2
    ISOTROPIC = 3
    BROADBAND_LAMBERTIAN = 4


class PixelRejected(ValueError):
    """
    Pixel produces no albedo.

    Raised for an invalid land-cover class, a class/band with no BRDF
    anywhere in the table, or a missing or non-finite reflectance band.
    """

    qa = QAFlag.REJECTED

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass
class BandTally:
    """Per-pixel counters collected over the band loop."""

    high_purity: int = 0
    borderline_purity: int = 0
    borrowed: int = 0
    negative_albedo: int = 0
    isotropic: int = 0
    missing: int = 0

    def qa_flag(self, n_bands: int) -> QAFlag:
        """
        Spectral QA from the counters, in priority order.

        Direct fits with purity below the threshold count towards none of
        the fit counters; such pixels get the isotropic flag as the most
        pessimistic pre-broadband state.
        """
        if self.high_purity == n_bands:
            return QAFlag.HIGH_PURITY
        if self.high_purity + self.borderline_purity == n_bands:
            return QAFlag.DIRECT_FIT
        if self.high_purity + self.borderline_purity + self.borrowed == n_bands:
            return QAFlag.BORROWED_FIT
        if self.negative_albedo > 0:
            return QAFlag.ISOTROPIC

        logger = logging.getLogger(__name__)
        logger.debug(f"No QA rule matched for {self}, flagging as isotropic")
        return QAFlag.ISOTROPIC


@dataclass
class AlbedoResult:
    """
    Albedo of one pixel.

    ``values`` holds (BSA, WSA) for each band in band order followed by
    shortwave BSA, shortwave WSA, visible BSA, visible WSA, NIR BSA, NIR WSA.
    """

    values: np.ndarray
    qa: QAFlag
    tally: BandTally = field(default_factory=BandTally)

    @property
    def n_bands(self) -> int:
        return (len(self.values) - 6) // 2

    @property
    def spectral_bsa(self) -> np.ndarray:
        return self.values[0:2 * self.n_bands:2]

    @property
    def spectral_wsa(self) -> np.ndarray:
        return self.values[1:2 * self.n_bands:2]

    def _broadband(self, offset: int) -> Tuple[float, float]:
        start = 2 * self.n_bands + offset
        return float(self.values[start]), float(self.values[start + 1])

    @property
    def shortwave(self) -> Tuple[float, float]:
        """(BSA, WSA)"""
        return self._broadband(0)

    @property
    def visible(self) -> Tuple[float, float]:
        """(BSA, WSA)"""
        return self._broadband(2)

    @property
    def nir(self) -> Tuple[float, float]:
        """(BSA, WSA)"""
        return self._broadband(4)


def clamp_reflectance(value: float, scale_factor: float) -> float:
    """
    Constrain stored reflectance before BRDF correction.

    Negative values (over-corrected atmosphere) become 0; values at or
    above 1.2/scale become 0.99/scale.
    """
    if value < 0:
        return 0.0
    if value >= REFLECTANCE_CAP_TRIGGER / scale_factor:
        return REFLECTANCE_CAP_VALUE / scale_factor
    return value


def round_brdf(params: Sequence[float]) -> np.ndarray:
    """Round kernel weights to the nearest integer (halves round up)."""
    return np.floor(np.asarray(params, dtype=np.float64) + 0.5).astype(np.int64)


def resolve_band_brdf(
    table: ClassBRDFTable,
    icls: int,
    brdf_band: int,
    tally: BandTally,
    closest_class: ClosestClassFunction
) -> np.ndarray:
    """
    Kernel weights for one class and BRDF band, rounded to integers.

    Uses the class's own fit when there is one, otherwise the fit of the
    closest class returned by ``closest_class``.

    Raises
    ------
    PixelRejected
        If the class has no fit and no closest class is found
    """
    if table.has_fit(icls, brdf_band):
        brdf_cls = icls
        purity = table.purity_of(icls)
        if purity > table.purity_threshold:
            tally.high_purity += 1
        elif purity == table.purity_threshold:
            tally.borderline_purity += 1
    else:
        brdf_cls = closest_class(icls, brdf_band)
        if brdf_cls is None or brdf_cls < 0:
            raise PixelRejected(f"no closest class for class {icls}, band {brdf_band}")
        tally.borrowed += 1

    return round_brdf(table.kernel_params(brdf_cls, brdf_band))


def compute_pixel_albedo(
    observation: PixelObservation,
    sensor: SensorConfig,
    table: ClassBRDFTable,
    snow: bool = False,
    an_ratio: ANRatioFunction = compute_an_ratio,
    closest_class: Optional[ClosestClassFunction] = None
) -> AlbedoResult:
    """
    Compute spectral and broadband albedo for one pixel.

    Parameters
    ----------
    observation : PixelObservation
        Geometry, land-cover class and stored reflectance of the pixel
    sensor : SensorConfig
        Sensor settings
    table : ClassBRDFTable
        Class BRDF table, fully populated and not modified during the run
    snow : bool, optional
        Snow flag selecting the snow shortwave coefficients
    an_ratio : callable, optional
        (brdf, sza, saa, vza, vaa) -> (wsa_ratio, bsa_ratio)
    closest_class : callable, optional
        (class, band) -> class or None; defaults to ``table.closest_class``

    Returns
    -------
    AlbedoResult
        2 * n_bands + 6 albedo values and the QA flag

    Raises
    ------
    PixelRejected
        Invalid class, unresolved borrowed BRDF or missing band
    ValueError
        If the sensor band map does not fit the table
    ANRatioError
        Propagated from ``an_ratio``; fatal for the whole run
    """
    logger = logging.getLogger(__name__)
    table.check_band_map(sensor.band_index_map[:sensor.n_bands])

    if not np.isfinite(observation.land_cover):
        raise PixelRejected(f"invalid land-cover class {observation.land_cover}")
    icls = int(observation.land_cover)
    if not table.is_valid_class(icls):
        raise PixelRejected(f"invalid land-cover class {icls}")

    if closest_class is None:
        closest_class = table.closest_class

    coefficients = sensor.coefficients(snow)
    n_bands = sensor.n_bands
    scale = sensor.scale_factor
    geometry = (observation.sza, observation.saa, observation.vza, observation.vaa)

    # Reflectance as used downstream, clamped on the BRDF path
    reflectance = observation.band_reflectance(n_bands)
    values = np.zeros(sensor.n_outputs, dtype=np.float64)
    tally = BandTally()

    for iband in range(n_bands):
        brdf = resolve_band_brdf(
            table, icls, sensor.band_index_map[iband], tally, closest_class
        )

        if reflectance[iband] == sensor.fill_value or not np.isfinite(reflectance[iband]):
            tally.missing += 1
            continue

        if np.any(brdf != 0):
            reflectance[iband] = clamp_reflectance(reflectance[iband], scale)
            scaled = scale * reflectance[iband]

            wsa_ratio, bsa_ratio = an_ratio(brdf, *geometry)
            bsa = scaled * bsa_ratio
            wsa = scaled * wsa_ratio

            if bsa < 0 or wsa < 0:
                tally.negative_albedo += 1
                bsa = wsa = scaled
        else:
            tally.isotropic += 1
            bsa = wsa = scale * reflectance[iband]

        values[2 * iband] = bsa
        values[2 * iband + 1] = wsa

    if tally.missing:
        raise PixelRejected(f"{tally.missing} missing reflectance band(s)")

    qa = tally.qa_flag(n_bands)

    spectral_bsa = values[0:2 * n_bands:2]
    spectral_wsa = values[1:2 * n_bands:2]
    offset = 2 * n_bands

    for name, coefs in coefficients.products():
        bsa = coefs.apply(spectral_bsa)
        wsa = coefs.apply(spectral_wsa)

        if bsa <= 0 or wsa <= 0:
            logger.debug(f"Non-positive {name} albedo ({bsa}, {wsa}), recomputing from reflectance")
            bsa = wsa = coefs.apply(reflectance * scale)
            qa = QAFlag.BROADBAND_LAMBERTIAN

        values[offset] = bsa
        values[offset + 1] = wsa
        offset += 2

    return AlbedoResult(values=values, qa=qa, tally=tally)


class AlbedoEngine:
    """
    Albedo engine bound to one sensor and BRDF table.

    The engine holds read-only references only, so ``compute`` can be
    called concurrently for different pixels.

    Parameters
    ----------
    sensor : SensorConfig
        Sensor settings
    table : ClassBRDFTable
        Class BRDF table
    an_ratio : callable, optional
        Albedo-to-nadir ratio function (default: RTLSR kernels)
    closest_class : callable, optional
        Closest-class resolver (default: ``table.closest_class``)
    """

    def __init__(
        self,
        sensor: SensorConfig,
        table: ClassBRDFTable,
        an_ratio: Optional[ANRatioFunction] = None,
        closest_class: Optional[ClosestClassFunction] = None
    ):
        table.check_band_map(sensor.band_index_map[:sensor.n_bands])

        self.sensor = sensor
        self.table = table
        self.an_ratio = an_ratio or compute_an_ratio
        self.closest_class = closest_class or table.closest_class
        self.logger = logging.getLogger(__name__)

        self.logger.info(
            f"Albedo engine for {sensor.instrument.value}: {sensor.n_bands} bands, "
            f"scale {sensor.scale_factor}, {table.n_classes} classes"
        )

    def compute(self, observation: PixelObservation, snow: bool = False) -> AlbedoResult:
        """
        Compute albedo for one pixel.

        Raises
        ------
        PixelRejected
            The pixel is a gap in the output
        ANRatioError
            The run must stop
        """
        return compute_pixel_albedo(
            observation,
            self.sensor,
            self.table,
            snow=snow,
            an_ratio=self.an_ratio,
            closest_class=self.closest_class,
        )
