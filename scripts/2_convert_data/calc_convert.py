"""
calc_convert.py

This is a script where Stage 2: Convert related common functions, conversions, and calculations are stored for ease of use
for the AmeriFlux to CF conversion.

Functions
---------
- ud_convert: Converts data between two unit strings using the registered unit conversions.
_unit_degC_to_K: Converts temperature from degC to K
_unit_K_to_degC: Converts temperature from K to degC
_unit_pres_hpa_to_pa: Converts air pressure from hectopascals to pascals.
_unit_pres_kpa_to_pa: Converts air pressure from kilopascals to pascals.
_unit_pres_pa_to_kpa: Converts air pressure from pascals to kilopascals.
_unit_ppm_to_molmol: Converts a mole fraction from ppm to mol/mol.
_unit_molmol_to_ppm: Converts a mole fraction from mol/mol to ppm.
_unit_umol_to_mol: Converts a photon flux from umol m-2 s-1 to mol m-2 s-1.
_unit_mol_to_umol: Converts a photon flux from mol m-2 s-1 to umol m-2 s-1.
- saturation_vapor_pressure: Bolton saturation vapor pressure.
- rh2qair: Converts relative humidity to specific humidity.
- calc_wind_components: Splits wind speed and direction into eastward and northward wind.
- calc_timestep_minutes: Native timestep of a raw time axis, in minutes.
- calc_precip_flux: Converts precipitation per native timestep to a per-second rate.

Intended Use
------------
Functions consist of unit conversions and derived variable calculations for converting AmeriFlux L2 files.
"""

import warnings

import numpy as np

from convert_config import REFERENCE_INTERVAL, REFERENCE_MINUTES
from convert_errors import DegenerateTimeAxis, UnitError


def _unit_degC_to_K(data: float) -> float:
    """Converts temperature from degC to K

    Parameters
    ----------
    data : float
        input data to convert

    Returns
    -------
    data : float
        data converted to K
    """
    data = data + 273.15
    return data


def _unit_K_to_degC(data: float) -> float:
    """Converts temperature from K to degC"""
    data = data - 273.15
    return data


def _unit_pres_hpa_to_pa(data: float) -> float:
    """Converts air pressure from hectopascals to pascals

    Parameters
    ----------
    data : float
        input data to convert

    Returns
    -------
    data : float
        data converted to Pa

    Notes
    ------
    This also works for the conversion from mb
    """
    data = data * 100.0
    return data


def _unit_pres_kpa_to_pa(data: float) -> float:
    """Converts air pressure from kilopascals to pascals

    Parameters
    ----------
    data : float
        input data to convert

    Returns
    -------
    data : float
        data converted to Pa
    """
    data = data * 1000.0
    return data


def _unit_pres_pa_to_kpa(data: float) -> float:
    """Converts air pressure from pascals to kilopascals"""
    data = data / 1000.0
    return data


def _unit_ppm_to_molmol(data: float) -> float:
    """Converts a mole fraction from parts per million to mol/mol

    Parameters
    ----------
    data : float
        input data to convert

    Returns
    -------
    data : float
        data converted to mol/mol
    """
    data = data * 1e-6
    return data


def _unit_molmol_to_ppm(data: float) -> float:
    """Converts a mole fraction from mol/mol to parts per million"""
    data = data * 1e6
    return data


def _unit_umol_to_mol(data: float) -> float:
    """Converts a photon flux from umol m-2 s-1 to mol m-2 s-1

    Parameters
    ----------
    data : float
        input data to convert

    Returns
    -------
    data : float
        data converted to mol m-2 s-1
    """
    data = data * 1e-6
    return data


def _unit_mol_to_umol(data: float) -> float:
    """Converts a photon flux from mol m-2 s-1 to umol m-2 s-1"""
    data = data * 1e6
    return data


UNIT_CONVERSIONS = {
    ("degC", "K"): _unit_degC_to_K,
    ("K", "degC"): _unit_K_to_degC,
    ("hPa", "Pa"): _unit_pres_hpa_to_pa,
    ("kPa", "Pa"): _unit_pres_kpa_to_pa,
    ("Pa", "kPa"): _unit_pres_pa_to_kpa,
    ("ppm", "mol/mol"): _unit_ppm_to_molmol,
    ("mol/mol", "ppm"): _unit_molmol_to_ppm,
    ("umol m-2 s-1", "mol m-2 s-1"): _unit_umol_to_mol,
    ("mol m-2 s-1", "umol m-2 s-1"): _unit_mol_to_umol,
}


def ud_convert(data, from_units: str, to_units: str):
    """Converts data between two unit strings.

    Parameters
    ----------
    data : float or np.ndarray
        input data to convert, NaN is passed through
    from_units : str
        unit of the input data
    to_units : str
        desired unit

    Returns
    -------
    float or np.ndarray
        data converted to `to_units`

    Raises
    ------
    UnitError
        If no conversion is registered between the two unit strings.
    """
    if from_units == to_units:
        return data
    try:
        conversion = UNIT_CONVERSIONS[(from_units, to_units)]
    except KeyError:
        raise UnitError(from_units, to_units) from None
    return conversion(data)


def saturation_vapor_pressure(temperature):
    r"""Calculate the saturation water vapor (partial) pressure.

    Parameters
    ----------
    temperature : float or np.ndarray
        Air temperature, degC

    Returns
    -------
    float or np.ndarray
        Saturation water vapor (partial) pressure, hPa

    Notes
    -----
    The formula used is that from [Bolton1980]_ for T in degrees Celsius:
    .. math:: 6.112 e^\frac{17.67T}{T + 243.5}
    """
    return 6.112 * np.exp((17.67 * temperature) / (temperature + 243.5))


def rh2qair(rh, T, press=101325.0):
    """Converts relative humidity to specific humidity.

    Parameters
    ----------
    rh : float or np.ndarray
        relative humidity, as a fraction (0-1)
    T : float or np.ndarray
        air temperature, K
    press : float or np.ndarray, optional
        air pressure, Pa. Default is standard sea level pressure.

    Returns
    -------
    qair : float or np.ndarray
        specific humidity, kg/kg
    """
    T = np.asarray(T, dtype=float)
    if np.any(T[~np.isnan(T)] < 0):
        raise ValueError("Air temperature must be in K and non-negative.")
    if np.any(np.asarray(rh)[~np.isnan(rh)] > 1.0):
        warnings.warn("Relative humidity >100%, ensure rh is a fraction.")

    Tc = _unit_K_to_degC(T)
    es = saturation_vapor_pressure(Tc)
    e = rh * es
    p_mb = press / 100.0
    qair = (0.622 * e) / (p_mb - (0.378 * e))
    return qair


def calc_wind_components(wspd, wdir) -> tuple:
    """Calculates eastward and northward wind

    Parameters
    ----------
    wspd : float or np.ndarray
        wind speed
    wdir : float or np.ndarray
        wind direction, degrees

    Returns
    -------
    eastward : float or np.ndarray
        eastward wind, same units as wspd
    northward : float or np.ndarray
        northward wind, same units as wspd
    """
    wdir_rad = wdir * (np.pi / 180)
    eastward = wspd * np.cos(wdir_rad)
    northward = wspd * np.sin(wdir_rad)
    return eastward, northward


def calc_timestep_minutes(time_vals) -> float:
    """Calculates the native timestep of a raw time axis, in minutes.

    Parameters
    ----------
    time_vals : np.ndarray
        raw time coordinate, where REFERENCE_INTERVAL equals REFERENCE_MINUTES

    Returns
    -------
    timestep : float
        mean interval between samples, rounded to the nearest 0.1 minute

    Raises
    ------
    DegenerateTimeAxis
        If there are fewer than 2 samples, or the mean interval is not positive.
    """
    time_vals = np.asarray(time_vals, dtype=float)
    if time_vals.size < 2:
        raise DegenerateTimeAxis(time_vals.size)

    minute = REFERENCE_INTERVAL / REFERENCE_MINUTES
    timestep = round(float(np.mean(np.diff(time_vals))) / minute, 1)
    if not np.isfinite(timestep) or timestep <= 0:
        raise DegenerateTimeAxis(
            time_vals.size, reason=f"mean timestep of {timestep} minutes"
        )
    return timestep


def calc_precip_flux(data, timestep: float):
    """Converts precipitation per native timestep to a per-second rate

    Parameters
    ----------
    data : float or np.ndarray
        precipitation accumulated over one timestep, kg/m^2
    timestep : float
        native timestep, minutes

    Returns
    -------
    data : float or np.ndarray
        precipitation flux, kg/m^2/s
    """
    data = data / timestep / 60
    return data
