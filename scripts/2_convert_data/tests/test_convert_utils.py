"""
Tests for missing value handling, attribute copying and the simple variable conversions.
"""

import netCDF4
import numpy as np
import pytest

from calc_convert import ud_convert
from convert_errors import DuplicateVariable, SourceVariableNotFound, UnitError
from convert_utils import (
    CONVERSION_SPECS,
    copy_attrs,
    copyvals,
    normalize_missing,
)
from nc_store import DestinationFile, Dimension, SourceFile, VariableDef

DIMS = ("latitude", "longitude", "time")

CF_NAMES = {
    "air_temperature",
    "air_pressure",
    "mole_fraction_of_carbon_dioxide_in_air",
    "soil_temperature",
    "relative_humidity",
    "specific_humidity",
    "water_vapor_saturation_deficit",
    "surface_downwelling_shortwave_flux_in_air",
    "surface_downwelling_longwave_flux_in_air",
    "surface_downwelling_photosynthetic_photon_flux_in_air",
    "wind_direction",
    "wind_speed",
    "eastward_wind",
    "northward_wind",
    "precipitation_flux",
    "latitude",
    "longitude",
}


@pytest.fixture
def open_pair(tmp_path, make_raw_file):
    """Opens a raw file and a converted file (with dimensions) and closes both afterwards."""
    opened = []

    def _open(**kwargs):
        src = SourceFile(make_raw_file(**kwargs))
        _, tvals = src.get_dimension("DTIME")
        dst = DestinationFile(tmp_path / "converted.nc")
        dst.create_dimensions(
            [
                Dimension("latitude", 1),
                Dimension("longitude", 1),
                Dimension("time", len(tvals), units="days", values=tvals, unlimited=True),
            ]
        )
        opened.append((src, dst))
        return src, dst

    yield _open

    for src, dst in opened:
        src.close()
        dst.close()


def _read(tmp_path, name):
    with netCDF4.Dataset(tmp_path / "converted.nc") as nc:
        var = nc.variables[name]
        return np.ma.filled(var[0, 0, :].astype(float), np.nan), {k: var.getncattr(k) for k in var.ncattrs()}


## -----------------------------------------------------------------------------------------
## Missing values
def test_normalize_missing():
    raw = np.array([-9999.0, 1.5, -6999.0, 0.0, -6998.0, -9999])
    out = normalize_missing(raw)
    assert np.isnan(out[[0, 2, 5]]).all()
    np.testing.assert_array_equal(out[[1, 3, 4]], raw[[1, 3, 4]])
    # raw array untouched
    assert raw[0] == -9999.0


def test_normalize_missing_integers():
    out = normalize_missing(np.array([-9999, 3, -6999]))
    assert out.dtype == float
    assert np.isnan(out[0]) and out[1] == 3.0 and np.isnan(out[2])


## -----------------------------------------------------------------------------------------
## Conversion table
def test_conversion_table():
    assert len(CONVERSION_SPECS) == 11
    assert {spec.dest_name for spec in CONVERSION_SPECS} <= CF_NAMES
    assert len({spec.dest_name for spec in CONVERSION_SPECS}) == 11
    for spec in CONVERSION_SPECS:
        # units are declared exactly when values are converted
        assert (spec.dest_units is None) == (spec.conv is None)


def test_vpd_negative_values_are_missing():
    vpd = dict((spec.source_name, spec) for spec in CONVERSION_SPECS)["VPD"]
    out = vpd.conv(np.array([-0.4, -0.001, 0.0, 1.2, np.nan]))
    assert np.isnan(out[[0, 1, 4]]).all()
    np.testing.assert_allclose(out[[2, 3]], [0.0, 1200.0])


## -----------------------------------------------------------------------------------------
## copyvals
def test_copyvals_converts_values_and_attributes(tmp_path, open_pair):
    vals = np.full(48, 20.0)
    vals[[0, 7]] = [-9999.0, -6999.0]
    src, dst = open_pair(values={"TA": vals})
    spec = CONVERSION_SPECS[0]
    copyvals(src, spec.source_name, dst, spec.dest_name, DIMS, units2=spec.dest_units, conv=spec.conv)
    dst.close()

    out, attrs = _read(tmp_path, "air_temperature")
    assert np.isnan(out[[0, 7]]).all()
    np.testing.assert_allclose(out[1:7], 293.15, rtol=1e-6)
    assert attrs["units"] == "K"
    assert attrs["valid_min"] == pytest.approx(223.15)
    assert attrs["valid_max"] == pytest.approx(323.15)
    assert attrs["long_name"] == "air temperature"
    assert attrs["comment"] == "air temperature measured at the tower"


def test_copyvals_keeps_source_units(tmp_path, open_pair):
    src, dst = open_pair()
    copyvals(src, "Rg", dst, "surface_downwelling_shortwave_flux_in_air", DIMS)
    dst.close()

    out, attrs = _read(tmp_path, "surface_downwelling_shortwave_flux_in_air")
    assert attrs["units"] == "W/m2"
    assert attrs["valid_max"] == pytest.approx(1400.0)
    np.testing.assert_allclose(out, 300.0)


def test_copyvals_missing_source(open_pair):
    src, dst = open_pair(drop=("TS1",))
    with pytest.raises(SourceVariableNotFound):
        copyvals(src, "TS1", dst, "soil_temperature", DIMS, units2="K")
    assert not dst.has_variable("soil_temperature")


def test_copyvals_bad_units(open_pair):
    src, dst = open_pair()
    with pytest.raises(UnitError):
        copyvals(src, "TA", dst, "air_temperature", DIMS, units2="K",
                 conv=lambda x: ud_convert(x, "degF", "K"))
    assert not dst.has_variable("air_temperature")


def test_copyvals_duplicate(open_pair):
    src, dst = open_pair()
    copyvals(src, "WS", dst, "wind_speed", DIMS)
    with pytest.raises(DuplicateVariable):
        copyvals(src, "WD", dst, "wind_speed", DIMS)


## -----------------------------------------------------------------------------------------
## copy_attrs
def test_copy_attrs_skips_absent_attributes(tmp_path, open_pair):
    src, dst = open_pair(drop_attrs={"WS": ("comment", "valid_min")})
    dst.add_variable(VariableDef("wind_speed", "m/s", DIMS))
    written = copy_attrs(src, "WS", dst, "wind_speed")
    dst.close()

    assert written == ["long_name", "valid_max"]
    _, attrs = _read(tmp_path, "wind_speed")
    assert "comment" not in attrs
    assert "valid_min" not in attrs


def test_copy_attrs_converts_bounds(tmp_path, open_pair):
    src, dst = open_pair()
    dst.add_variable(VariableDef("air_pressure", "Pa", DIMS))
    copy_attrs(src, "PRESS", dst, "air_pressure", conv=lambda x: ud_convert(x, "kPa", "Pa"))
    dst.close()

    _, attrs = _read(tmp_path, "air_pressure")
    assert attrs["valid_min"] == pytest.approx(60000.0)
    assert attrs["valid_max"] == pytest.approx(110000.0)
    assert attrs["comment"] == "air pressure measured at the tower"
