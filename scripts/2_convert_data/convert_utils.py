"""
convert_utils.py

Functions
---------
- normalize_missing: Replaces the raw AmeriFlux missing value codes with NaN.
- copy_attrs: Copies and converts the descriptive attributes of a raw variable onto a converted variable.
- copyvals: Copies one raw variable into one converted variable, with unit conversion and attributes.

Intended Use
------------
Support utility functions for conversion processes, as a part of the convert pipeline. Every simple
(single source variable) conversion is a ConversionSpec entry in CONVERSION_SPECS; conversions that
need more than one source variable or file-level context live in convert_derive.py.
"""

import logging
import re
from dataclasses import dataclass
from functools import partial
from typing import Callable

import numpy as np

from calc_convert import ud_convert
from convert_config import MISSING_SENTINELS, MISSING_VALUE
from nc_store import DestinationFile, SourceFile, VariableDef

# Clause documenting the raw missing value codes, no longer true once they are NaN
_MISSING_COMMENT_RE = re.compile(
    r", -9999.* = missing value, -6999.* = unreported value"
)

# Descriptive attributes carried over to converted variables
_COPY_ATTRS = ("long_name", "valid_min", "valid_max", "comment")


@dataclass(frozen=True)
class ConversionSpec:
    """Raw variable `source_name` becomes `dest_name` in `dest_units`, through `conv` (identity if None)."""

    source_name: str
    dest_name: str
    dest_units: str | None = None
    conv: Callable | None = None


def _unit_vpd_kpa_to_pa(data):
    """Converts vapor pressure deficit from kPa to Pa. Negative deficits are sensor artifacts and become NaN."""
    data = ud_convert(data, "kPa", "Pa")
    return np.where(data < 0, np.nan, data)


CONVERSION_SPECS = (
    ConversionSpec("TA", "air_temperature", "K", partial(ud_convert, from_units="degC", to_units="K")),
    ConversionSpec("PRESS", "air_pressure", "Pa", partial(ud_convert, from_units="kPa", to_units="Pa")),
    ConversionSpec(
        "CO2",
        "mole_fraction_of_carbon_dioxide_in_air",
        "mol/mol",
        partial(ud_convert, from_units="ppm", to_units="mol/mol"),
    ),
    ConversionSpec("TS1", "soil_temperature", "K", partial(ud_convert, from_units="degC", to_units="K")),
    ConversionSpec("RH", "relative_humidity"),
    ConversionSpec("VPD", "water_vapor_saturation_deficit", "Pa", _unit_vpd_kpa_to_pa),
    ConversionSpec("Rg", "surface_downwelling_shortwave_flux_in_air"),
    ConversionSpec("Rgl", "surface_downwelling_longwave_flux_in_air"),
    ConversionSpec(
        "PAR",
        "surface_downwelling_photosynthetic_photon_flux_in_air",
        "mol m-2 s-1",
        partial(ud_convert, from_units="umol m-2 s-1", to_units="mol m-2 s-1"),
    ),
    ConversionSpec("WD", "wind_direction"),  # not official CF
    ConversionSpec("WS", "wind_speed"),
)


def normalize_missing(data, sentinels: tuple = MISSING_SENTINELS) -> np.ndarray:
    """
    Returns a copy of `data` where every missing value code is NaN.

    Parameters
    ----------
    data : np.ndarray
        raw values
    sentinels : tuple, optional
        missing value codes. Defaults to (-6999, -9999).

    Returns
    -------
    np.ndarray
        float copy of data, with sentinels replaced by NaN
    """
    data = np.array(data, dtype=float)
    data[np.isin(data, sentinels)] = np.nan
    return data


def attr_value(value):
    # numpy 0-d results back to plain numbers for netCDF attributes
    if np.ndim(value) == 0:
        return np.asarray(value).item()
    return value


def copy_attrs(
    src: SourceFile,
    var1: str,
    dst: DestinationFile,
    var2: str,
    conv: Callable | None = None,
) -> list[str]:
    """
    Copies long_name, valid_min, valid_max and comment from raw variable `var1` to converted variable `var2`.

    Attributes missing on `var1` are skipped. valid_min and valid_max go through `conv`, same as the values.
    The comment loses its clause documenting the -9999 / -6999 codes.

    Parameters
    ----------
    src : SourceFile
        raw file
    var1 : str
        raw variable name
    dst : DestinationFile
        converted file
    var2 : str
        converted variable name
    conv : Callable, optional
        conversion applied to the values of var1

    Returns
    -------
    list[str]
        names of the attributes written
    """
    written = []
    for attname in _COPY_ATTRS:
        value = src.get_attribute(var1, attname)
        if value is None:
            continue
        if attname in ("valid_min", "valid_max") and conv is not None:
            value = conv(value)
        elif attname == "comment":
            value = _MISSING_COMMENT_RE.sub("", str(value), count=1)
        dst.put_attribute(var2, attname, attr_value(value))
        written.append(attname)
    return written


def copyvals(
    src: SourceFile,
    var1: str,
    dst: DestinationFile,
    var2: str,
    dims: tuple,
    units2: str | None = None,
    conv: Callable | None = None,
    missval: float = MISSING_VALUE,
    logger: logging.Logger | None = None,
) -> None:
    """
    Copies raw variable `var1` into a new converted variable `var2`.

    The raw values have their missing value codes set to NaN before `conv` is applied.
    If `units2` is not given the raw units attribute is kept.

    Parameters
    ----------
    src : SourceFile
        raw file
    var1 : str
        raw variable name
    dst : DestinationFile
        converted file
    var2 : str
        converted variable name
    dims : tuple
        dimension names of var2
    units2 : str, optional
        units of var2, must match conv
    conv : Callable, optional
        conversion applied to the values and to valid_min / valid_max
    missval : float, optional
        missing value marker of var2. Defaults to -6999.
    logger : logging.Logger, optional
        logger instance

    Raises
    ------
    SourceVariableNotFound
        If var1 is not in the raw file.
    UnitError
        If conv cannot convert between its unit strings.
    DuplicateVariable
        If var2 already exists in the converted file.
    """
    logger = logger or logging.getLogger("sharedLogger")

    vals = normalize_missing(src.get_variable(var1))
    if conv is not None:
        vals = conv(vals)
    if units2 is None:
        units2 = src.get_attribute(var1, "units")

    dst.add_variable(VariableDef(name=var2, units=units2, dims=dims, missval=missval))
    dst.put_values(var2, vals)
    copy_attrs(src, var1, dst, var2, conv)
    logger.debug(f"Converted {var1} to {var2} [{units2}]")
