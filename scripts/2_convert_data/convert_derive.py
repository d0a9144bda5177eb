"""convert_derive.py

This script performs the conversion protocols for variables that are derived from more than one raw
variable, or from a raw variable and file-level information, rather than copied from a single raw variable.

Derived variables
- Specific humidity: requires relative humidity, air temperature
- Eastward / northward wind: requires wind speed, wind direction
- Precipitation flux: requires precipitation per timestep, raw time axis (for the native timestep)

Each derivation reads its raw inputs itself and sets the missing value codes to NaN on its own copy,
so derivations and the table conversions in convert_utils never share partially converted arrays.
"""

import inspect
import logging
from functools import partial

import numpy as np

from calc_convert import (
    calc_precip_flux,
    calc_timestep_minutes,
    calc_wind_components,
    rh2qair,
    ud_convert,
)
from convert_config import MISSING_VALUE
from convert_utils import attr_value, copyvals, normalize_missing
from nc_store import DestinationFile, SourceFile, VariableDef


def derive_specific_humidity(
    src: SourceFile,
    dst: DestinationFile,
    dims: tuple,
    logger: logging.Logger | None = None,
) -> np.ndarray:
    """
    Derives specific_humidity (kg/kg) from RH (%) and TA (degC).

    Parameters
    ----------
    src : SourceFile
        raw file
    dst : DestinationFile
        converted file
    dims : tuple
        dimension names of the derived variable
    logger : logging.Logger, optional
        logger instance

    Returns
    -------
    np.ndarray
        specific humidity
    """
    logger = logger or logging.getLogger("sharedLogger")
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting...")

    rh = normalize_missing(src.get_variable("RH")) / 100.0
    ta = ud_convert(normalize_missing(src.get_variable("TA")), "degC", "K")
    sh = rh2qair(rh=rh, T=ta)

    dst.add_variable(
        VariableDef(name="specific_humidity", units="kg/kg", dims=dims, missval=MISSING_VALUE)
    )
    dst.put_values("specific_humidity", sh)
    return sh


def derive_wind_components(
    src: SourceFile,
    dst: DestinationFile,
    dims: tuple,
    logger: logging.Logger | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Derives eastward_wind and northward_wind from WS and WD.

    Both components get valid_min = -max and valid_max = max, where max is the valid_max of WS (if present).

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        eastward and northward wind
    """
    logger = logger or logging.getLogger("sharedLogger")
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting...")

    wd = normalize_missing(src.get_variable("WD"))  # wind direction
    ws = normalize_missing(src.get_variable("WS"))  # wind speed
    ew, nw = calc_wind_components(ws, wd)
    wmax = src.get_attribute("WS", "valid_max")

    for name, vals in (("eastward_wind", ew), ("northward_wind", nw)):
        dst.add_variable(VariableDef(name=name, units="m/s", dims=dims, missval=MISSING_VALUE))
        dst.put_values(name, vals)
        if wmax is not None:
            dst.put_attribute(name, "valid_min", -attr_value(wmax))
            dst.put_attribute(name, "valid_max", attr_value(wmax))
        else:
            logger.warning(f"WS has no valid_max, {name} has no valid range")

    return ew, nw


def derive_precip_flux(
    src: SourceFile,
    dst: DestinationFile,
    dims: tuple,
    time_vals: np.ndarray,
    logger: logging.Logger | None = None,
) -> float:
    """
    Derives precipitation_flux (kg/m^2/s) from PREC, accumulated per native timestep.

    Parameters
    ----------
    src : SourceFile
        raw file
    dst : DestinationFile
        converted file
    dims : tuple
        dimension names of the derived variable
    time_vals : np.ndarray
        raw time axis, used to find the native timestep
    logger : logging.Logger, optional
        logger instance

    Returns
    -------
    float
        native timestep, minutes

    Raises
    ------
    DegenerateTimeAxis
        If the native timestep cannot be computed from time_vals.
    """
    logger = logger or logging.getLogger("sharedLogger")
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting...")

    timestep = calc_timestep_minutes(time_vals)
    logger.info(f"Native timestep: {timestep} minutes")

    copyvals(
        src,
        "PREC",
        dst,
        "precipitation_flux",
        dims,
        units2="kg/m^2/s",
        conv=partial(calc_precip_flux, timestep=timestep),
        logger=logger,
    )
    return timestep
