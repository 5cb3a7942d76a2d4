"""
Narrow-to-broadband conversion coefficients.

Regression coefficients mapping the six reflective bands of a sensor
(blue, green, red, NIR, SWIR1, SWIR2) onto shortwave, visible and
near-infrared broadband albedo. Each set holds one weight per band
followed by an intercept.

Coefficient libraries:
- TM/ETM: Tao He (2012), ~250 USGS & ASTER library spectra
- OLI: Landsat-8 N2B library (snow-free and snow variants)
- MSI: Qingsong Sun (2016), bands 2, 3, 4, 8A, 11, 12 (inherent and apparent)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple

import numpy as np


class Instrument(Enum):
    """Sensor instruments with a narrow-to-broadband coefficient library."""

    TM = "TM"
    ETM = "ETM"
    OLI = "OLI"
    MSI = "MSI"

    @classmethod
    def parse(cls, name: str) -> "Instrument":
        """
        Parse an instrument name, ignoring case and common aliases.

        Parameters
        ----------
        name : str
            Instrument name such as 'OLI', 'msi' or 'ETM+'

        Returns
        -------
        Instrument
            Matching instrument
        """
        key = name.strip().upper().rstrip("+")
        aliases = {"L8": "OLI", "LC8": "OLI", "S2": "MSI", "S2A": "MSI", "S2B": "MSI"}
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown instrument: {name}")

    @property
    def is_legacy(self) -> bool:
        return self in (Instrument.TM, Instrument.ETM)


@dataclass(frozen=True)
class NarrowToBroadCoefficients:
    """
    One narrow-to-broadband regression.

    Parameters
    ----------
    weights : tuple
        Per-band weights in sensor band order
    intercept : float
        Additive adjustment applied after the weighted sum
    """

    weights: Tuple[float, ...]
    intercept: float

    def apply(self, values: Sequence[float]) -> float:
        """
        Weighted band sum plus intercept.

        Only the first ``len(values)`` weights are used.
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape[0] > len(self.weights):
            raise ValueError(
                f"Got {values.shape[0]} bands but only {len(self.weights)} weights"
            )
        weights = np.asarray(self.weights[:values.shape[0]], dtype=np.float64)
        return float(np.dot(weights, values) + self.intercept)


@dataclass(frozen=True)
class BroadbandCoefficients:
    """Shortwave, visible and NIR coefficient sets selected for one pixel."""

    shortwave: NarrowToBroadCoefficients
    visible: NarrowToBroadCoefficients
    nir: NarrowToBroadCoefficients

    def products(self) -> Tuple[Tuple[str, NarrowToBroadCoefficients], ...]:
        """Broadband products in output order."""
        return (
            ("shortwave", self.shortwave),
            ("visible", self.visible),
            ("nir", self.nir),
        )


TM_SHORTWAVE = NarrowToBroadCoefficients(
    (0.3206, 0.000, 0.1572, 0.3666, 0.1162, 0.0457), -0.0063
)
TM_VISIBLE = NarrowToBroadCoefficients(
    (0.6000, 0.2204, 0.1828, 0.000, 0.000, 0.000), -0.0033
)
TM_NIR = NarrowToBroadCoefficients(
    (0.000, 0.000, 0.000, 0.6646, 0.2859, 0.0566), -0.0037
)

OLI_SHORTWAVE = NarrowToBroadCoefficients(
    (0.2453421, 0.050843, 0.1803945, 0.3080635, 0.1331847, 0.0521349), 0.0011052
)
OLI_SHORTWAVE_SNOW = NarrowToBroadCoefficients(
    (1.22416, -0.431845, -0.3446429, 0.3367926, 0.1834496, 0.2554519), -0.0052154
)

MSI_SHORTWAVE = NarrowToBroadCoefficients(
    (0.2687617, 0.0361839, 0.1501418, 0.3044542, 0.164433, 0.0356021), -0.0048673
)
MSI_SHORTWAVE_SNOW = NarrowToBroadCoefficients(
    (-0.1992158, 2.300191, -1.912122, 0.6714989, -2.272847, 1.934139), -0.0001144
)

# (instrument family, snow) -> shortwave set; legacy sensors have no snow variant
SHORTWAVE_COEFFICIENTS: Dict[Tuple[str, bool], NarrowToBroadCoefficients] = {
    ("legacy", False): TM_SHORTWAVE,
    ("legacy", True): TM_SHORTWAVE,
    ("OLI", False): OLI_SHORTWAVE,
    ("OLI", True): OLI_SHORTWAVE_SNOW,
    ("MSI", False): MSI_SHORTWAVE,
    ("MSI", True): MSI_SHORTWAVE_SNOW,
}


def select_coefficients(instrument: Instrument, snow: bool = False) -> BroadbandCoefficients:
    """
    Select the broadband coefficient sets for a pixel.

    Parameters
    ----------
    instrument : Instrument
        Sensor instrument
    snow : bool, optional
        Whether the pixel is flagged as snow

    Returns
    -------
    BroadbandCoefficients
        Shortwave set for the instrument and snow state, with the fixed
        TM visible and NIR sets
    """
    family = "legacy" if instrument.is_legacy else instrument.value
    snow = bool(snow)

    if snow and instrument.is_legacy:
        logger = logging.getLogger(__name__)
        logger.debug(f"No snow coefficients for {instrument.value}, using snow-free set")

    return BroadbandCoefficients(
        shortwave=SHORTWAVE_COEFFICIENTS[(family, snow)],
        visible=TM_VISIBLE,
        nir=TM_NIR,
    )
