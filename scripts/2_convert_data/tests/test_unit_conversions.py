"""
This script runs tests that unit conversions perform as expected

To run: type "pytest test_unit_conversions.py" from the command line
"""

import numpy as np
import pytest

from calc_convert import (
    UNIT_CONVERSIONS,
    _unit_degC_to_K,
    _unit_ppm_to_molmol,
    _unit_pres_hpa_to_pa,
    _unit_pres_kpa_to_pa,
    _unit_umol_to_mol,
    ud_convert,
)
from convert_errors import UnitError


## -----------------------------------------------------------------------------------------
## Temperature conversions -- desired unit is K
@pytest.fixture
def grab_temp():
    """Air temperature in degC, with a missing value"""
    return np.array([-40.0, 0.0, 20.0, np.nan, 35.5])


def test_temp_conversion_degC(grab_temp):
    """Test that the _unit_degC_to_K function correctly converts from degC to K"""
    converted = _unit_degC_to_K(grab_temp)
    correct_conversion = grab_temp + 273.15
    np.testing.assert_array_equal(converted, correct_conversion)


def test_ud_convert_temperature(grab_temp):
    """Test that ud_convert dispatches degC -> K"""
    converted = ud_convert(grab_temp, "degC", "K")
    np.testing.assert_allclose(converted[[0, 1, 2, 4]], [233.15, 273.15, 293.15, 308.65])
    assert np.isnan(converted[3])


## -----------------------------------------------------------------------------------------
## Pressure conversions -- desired unit is Pascal
@pytest.fixture
def grab_pressure():
    """Air pressure in kPa"""
    return np.array([80.0, 95.2, 101.3])


def test_pressure_conversion_kpa(grab_pressure):
    """Test that the _unit_pres_kpa_to_pa correctly converts from kPa to Pa"""
    converted = _unit_pres_kpa_to_pa(grab_pressure)
    np.testing.assert_allclose(converted, grab_pressure * 1000.0)


def test_pressure_conversion_hpa():
    """Test that the _unit_pres_hpa_to_pa correctly converts from hPa to Pa"""
    assert _unit_pres_hpa_to_pa(1013.25) == pytest.approx(101325.0)


## -----------------------------------------------------------------------------------------
## Mole fraction and photon flux conversions
def test_co2_conversion_ppm():
    """Test that the _unit_ppm_to_molmol correctly converts from ppm to mol/mol"""
    assert _unit_ppm_to_molmol(400.0) == pytest.approx(4.0e-4)


def test_par_conversion_umol():
    """Test that the _unit_umol_to_mol correctly converts from umol m-2 s-1 to mol m-2 s-1"""
    assert _unit_umol_to_mol(1500.0) == pytest.approx(1.5e-3)


## -----------------------------------------------------------------------------------------
## ud_convert behavior
def test_same_units_is_identity():
    data = np.array([1.0, 2.0])
    assert ud_convert(data, "W/m2", "W/m2") is data


def test_unknown_units_raise():
    with pytest.raises(UnitError) as excinfo:
        ud_convert(1.0, "degF", "furlong")
    assert excinfo.value.from_units == "degF"
    assert excinfo.value.to_units == "furlong"


@pytest.mark.parametrize(
    "from_units,to_units",
    [("degC", "K"), ("kPa", "Pa"), ("ppm", "mol/mol"), ("umol m-2 s-1", "mol m-2 s-1")],
)
def test_round_trip(from_units, to_units):
    """Converting A -> B -> A gives back the original values"""
    assert (to_units, from_units) in UNIT_CONVERSIONS
    data = np.array([-12.5, 0.0, 3.25, 101.3, 1800.0])
    back = ud_convert(ud_convert(data, from_units, to_units), to_units, from_units)
    np.testing.assert_allclose(back, data, rtol=1e-12, atol=1e-9)
