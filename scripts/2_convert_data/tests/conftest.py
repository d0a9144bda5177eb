"""
Shared fixtures for the conversion tests: synthetic AmeriFlux L2 files and a timezone service stub.
"""

import numpy as np
import pytest
import xarray as xr

MISSING_COMMENT = ", -9999.0 = missing value, -6999.0 = unreported value"

# raw name: (units, long_name, valid_min, valid_max, constant value)
RAW_VARS = {
    "TA": ("degC", "air temperature", -50.0, 50.0, 20.0),
    "PRESS": ("kPa", "air pressure", 60.0, 110.0, 101.3),
    "CO2": ("ppm", "CO2 concentration", 0.0, 1000.0, 400.0),
    "TS1": ("degC", "soil temperature", -50.0, 50.0, 10.0),
    "RH": ("%", "relative humidity", 0.0, 100.0, 50.0),
    "VPD": ("kPa", "vapor pressure deficit", 0.0, 10.0, 1.2),
    "Rg": ("W/m2", "global radiation", 0.0, 1400.0, 300.0),
    "Rgl": ("W/m2", "longwave radiation", 0.0, 800.0, 350.0),
    "PAR": ("umol m-2 s-1", "photosynthetically active radiation", 0.0, 3000.0, 1000.0),
    "WD": ("deg", "wind direction", 0.0, 360.0, 0.0),
    "WS": ("m/s", "wind speed", 0.0, 50.0, 5.0),
    "PREC": ("mm", "precipitation", 0.0, 100.0, 0.5),
}

GLOBAL_ATTRS = {
    "title": "AmeriFlux L2 gap-filled data",
    "site_name": "Willow Creek",
    "site_id": "US-WCr",
    "version": "L2_v2",
}


def site_location(lat: float, lon: float) -> str:
    """Free-text site_location with latitude at characters 20-28 and longitude at 40-48."""
    return f"{'Site latitude:':<19}{lat:<9.4f}{'  lon:':<11}{lon:<9.4f} (WGS84)"


def build_raw_dataset(
    n=48,
    values=None,
    time_units="days since 2004-01-01 00:00:00",
    location=(45.8059, -90.0799),
    drop=(),
    drop_attrs=None,
    bounds=None,
):
    """Raw AmeriFlux-like dataset with constant values on a 30 minute DTIME axis."""
    values = values or {}
    drop_attrs = drop_attrs or {}
    dtime = np.arange(n) * 0.02083
    data_vars = {}
    for name, (units, long_name, vmin, vmax, const) in RAW_VARS.items():
        if name in drop:
            continue
        vals = np.asarray(values.get(name, np.full(n, const)), dtype=float)
        attrs = {
            "units": units,
            "long_name": long_name,
            "valid_min": vmin,
            "valid_max": vmax,
            "comment": f"{long_name} measured at the tower{MISSING_COMMENT}",
        }
        for attname in drop_attrs.get(name, ()):
            attrs.pop(attname)
        data_vars[name] = ("DTIME", vals, attrs)

    attrs = dict(GLOBAL_ATTRS)
    if location is not None:
        attrs["site_location"] = site_location(*location)
    if bounds is not None:
        attrs["geospatial_lat_min"], attrs["geospatial_lon_min"] = bounds

    return xr.Dataset(
        data_vars=data_vars,
        coords={"DTIME": ("DTIME", dtime, {"units": time_units})},
        attrs=attrs,
    )


@pytest.fixture
def make_raw_file(tmp_path):
    """Writes a synthetic raw file and returns its path."""

    def _make(name="US-WCr.2004.nc", directory=None, **kwargs):
        path = (directory or tmp_path) / name
        build_raw_dataset(**kwargs).to_netcdf(path)
        return str(path)

    return _make


class StubTimezoneService:
    """Timezone service returning a fixed UTC offset and recording its calls."""

    def __init__(self, offset=-6):
        self.offset = offset
        self.calls = []

    def lookup(self, lat, lon):
        self.calls.append((lat, lon))
        return self.offset


@pytest.fixture
def tz_service():
    return StubTimezoneService(offset=-6)
