"""
nc_store.py

Read and write access to the netCDF files handled by the conversion stage.

Classes
-------
- Dimension: Dimension of a converted file, optionally with a coordinate variable.
- VariableDef: Definition of a converted variable.
- SourceFile: Read-only access to a raw AmeriFlux file, with no CF decoding applied.
- DestinationFile: Incrementally built converted file, committed to its final path on close.

Intended Use
------------
SourceFile exposes raw values (including the missing value sentinels) and raw attributes, so that all
conversions happen explicitly in convert_utils and convert_derive. DestinationFile writes into a
partial file next to the final path, so a failed conversion never leaves an incomplete file behind.
"""

import os
from dataclasses import dataclass
from typing import Any

import netCDF4
import numpy as np
import xarray as xr

from convert_config import MISSING_VALUE
from convert_errors import DuplicateVariable, SourceVariableNotFound


@dataclass(frozen=True)
class Dimension:
    """Dimension of a converted file. Values are only materialized when given."""

    name: str
    size: int
    units: str | None = None
    values: Any = None
    unlimited: bool = False


@dataclass(frozen=True)
class VariableDef:
    """Name, units, dimensions and missing value marker of a converted variable."""

    name: str
    units: str | None
    dims: tuple
    missval: float = MISSING_VALUE


class SourceFile:
    """Read-only access to a raw netCDF file."""

    def __init__(self, path: str):
        self.path = str(path)
        # No decoding: keep raw time values, sentinels and attributes untouched
        self._ds = xr.open_dataset(self.path, decode_cf=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _check(self, name: str) -> None:
        if name not in self._ds.variables:
            raise SourceVariableNotFound(name, self.path)

    def has_variable(self, name: str) -> bool:
        return name in self._ds.variables

    def get_variable(self, name: str) -> np.ndarray:
        """Returns a fresh float copy of the raw values of `name`."""
        self._check(name)
        return np.array(self._ds[name].values, dtype=float)

    def get_attribute(self, name: str | None, attname: str):
        """Returns attribute `attname` of variable `name` (global when `name` is None), or None if absent."""
        if name is None:
            return self._ds.attrs.get(attname)
        self._check(name)
        return self._ds[name].attrs.get(attname)

    def get_dimension(self, name: str) -> tuple[str | None, np.ndarray]:
        """Returns the units and the coordinate values of dimension `name`."""
        self._check(name)
        coord = self._ds[name]
        return coord.attrs.get("units"), np.array(coord.values, dtype=float)

    def global_attributes(self) -> dict:
        return dict(self._ds.attrs)

    def close(self) -> None:
        self._ds.close()


class DestinationFile:
    """Converted netCDF file, built variable by variable.

    Everything is written to ``<path>.part``; ``close`` moves it onto ``path``
    and ``abort`` deletes it.
    """

    def __init__(self, path: str, overwrite: bool = False):
        self.path = str(path)
        self.part_path = self.path + ".part"
        if os.path.exists(self.path) and not overwrite:
            raise FileExistsError(f"{self.path} already exists")
        self._nc = netCDF4.Dataset(self.part_path, mode="w", format="NETCDF4")
        self._open = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False

    def create_dimensions(self, dims: list[Dimension]) -> None:
        for dim in dims:
            self._nc.createDimension(dim.name, None if dim.unlimited else dim.size)
            if dim.values is not None:
                coord = self._nc.createVariable(dim.name, "f8", (dim.name,))
                if dim.units is not None:
                    coord.units = dim.units
                coord[:] = np.asarray(dim.values, dtype=float)

    def has_variable(self, name: str) -> bool:
        return name in self._nc.variables

    def add_variable(self, vdef: VariableDef) -> None:
        if self.has_variable(vdef.name):
            raise DuplicateVariable(vdef.name)
        var = self._nc.createVariable(
            vdef.name, "f4", tuple(vdef.dims), fill_value=vdef.missval
        )
        if vdef.units is not None:
            var.units = vdef.units

    def put_values(self, name: str, values) -> None:
        """Writes `values` into `name`; NaN is stored as the variable's fill value."""
        var = self._nc.variables[name]
        values = np.ma.masked_invalid(np.asarray(values, dtype=float))
        var[...] = values.reshape(var.shape)

    def put_attribute(self, name: str | None, attname: str, value) -> None:
        """Sets attribute `attname` on variable `name`, or on the file when `name` is None.

        Numeric variable attributes are stored in the variable's own type, as CF requires for
        valid_min / valid_max.
        """
        if name is None:
            self._nc.setncattr(attname, value)
            return
        var = self._nc.variables[name]
        if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
            value = var.dtype.type(value)
        var.setncattr(attname, value)

    def close(self) -> None:
        if self._open:
            self._nc.close()
            self._open = False
            os.replace(self.part_path, self.path)

    def abort(self) -> None:
        if self._open:
            self._nc.close()
            self._open = False
        if os.path.exists(self.part_path):
            os.remove(self.part_path)
