"""Scalar unit conversions.

All conversions are exact linear maps; rounding belongs to whoever displays
the value.
"""
from __future__ import annotations

from typing import Callable, Dict

from aperture.domain import SpeedUnit

MPS_TO_MPH = 2.23694
MPS_TO_KPH = 3.6
MPS_TO_KTS = 1.94384
M_TO_FT = 3.28084
KM_TO_MI = 0.621371


def mps_to_mph(mps: float) -> float:
    return mps * MPS_TO_MPH


def mps_to_kph(mps: float) -> float:
    return mps * MPS_TO_KPH


def mps_to_kts(mps: float) -> float:
    return mps * MPS_TO_KTS


def c_to_f(c: float) -> float:
    return (c * 9 / 5) + 32


def m_to_ft(m: float) -> float:
    return m * M_TO_FT


def ft_to_m(ft: float) -> float:
    return ft / M_TO_FT


def km_to_mi(km: float) -> float:
    return km * KM_TO_MI


_MPS_CONVERTERS: Dict[SpeedUnit, Callable[[float], float]] = {
    SpeedUnit.MPH: mps_to_mph,
    SpeedUnit.KPH: mps_to_kph,
    SpeedUnit.KTS: mps_to_kts,
}


def convert_mps(mps: float, unit: SpeedUnit) -> float:
    """Convert a metres-per-second reading into the requested display unit."""
    return _MPS_CONVERTERS[SpeedUnit(unit)](mps)
