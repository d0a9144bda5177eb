"""
AMERIFLUX_convert.py

Script converts AmeriFlux L2 netCDF files (one per year) into CF-convention netCDF files.

Approach
--------
(1) Open the raw file and locate the site (site_location, or geospatial bounds).
(2) Make sure the time units carry the UTC offset of the site's local standard time.
(3) Create the converted file with latitude / longitude (size 1) and time dimensions.
(4) Derive specific humidity from relative humidity and air temperature.
(5) Convert the simple variables listed in convert_utils.CONVERSION_SPECS: rename, convert units, set missing
    data to the standard fill value, and carry over descriptive attributes.
(6) Derive precipitation flux from precipitation and the native timestep.
(7) Derive eastward and northward wind from wind speed and direction.
(8) Copy all global attributes of the raw file.

Functions
---------
- convert_file: Convert one raw file into one CF file.
- convert_ameriflux: Convert every year between start_date and end_date.

Intended Use
------------
Converted data for a single AmeriFlux site, one CF .nc file per year, plus a results table describing them.

Notes
-----
A failed year is logged, recorded in the errors table, its partial output removed, and it is left out of
the results table. The remaining years are still converted.
"""

import argparse
import inspect
import logging
import os
import socket
from datetime import datetime

import pandas as pd

from convert_config import (
    FORMATNAME,
    GEONAMES_USERNAME,
    LOGS_DIR,
    MIMETYPE,
    RAW_TIME_DIM,
)
from convert_derive import (
    derive_precip_flux,
    derive_specific_humidity,
    derive_wind_components,
)
from convert_errors import FileConversionError
from convert_timezone import GeonamesTimezoneService, get_lat_lon, resolve_time_units
from convert_utils import CONVERSION_SPECS, copyvals
from log_config import close_logger, setup_logger
from nc_store import DestinationFile, Dimension, SourceFile, VariableDef

DIMS = ("latitude", "longitude", "time")


def convert_file(
    in_file: str,
    out_file: str,
    timezone_service: GeonamesTimezoneService,
    overwrite: bool = False,
    logger: logging.Logger | None = None,
) -> None:
    """
    Converts one raw AmeriFlux L2 file into one CF file.

    Parameters
    ----------
    in_file : str
        path to raw file
    out_file : str
        path to converted file
    timezone_service : GeonamesTimezoneService
        UTC offset lookup, used when the raw time units have no offset
    overwrite : bool, optional
        replace out_file if it exists. Default is False.
    logger : logging.Logger, optional
        logger instance

    Raises
    ------
    FileConversionError
        Wraps any failure, naming the step (variable or derivation) that caused it. out_file is not created.
    """
    logger = logger or logging.getLogger("sharedLogger")
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting {in_file}...")

    step = "open raw file"
    try:
        with SourceFile(in_file) as src:
            step = "site location"
            location = get_lat_lon(src, logger=logger)

            step = "time units"
            tunits, tvals = src.get_dimension(RAW_TIME_DIM)
            tunits = resolve_time_units(tunits, location, timezone_service, logger=logger)

            lat = Dimension(name="latitude", size=1)
            lon = Dimension(name="longitude", size=1)
            time = Dimension(
                name="time", size=len(tvals), units=tunits, values=tvals, unlimited=True
            )

            step = "create converted file"
            with DestinationFile(out_file, overwrite=overwrite) as dst:
                dst.create_dimensions([lat, lon, time])

                # site location as size 1 coordinates
                dst.add_variable(
                    VariableDef("latitude", "degree_north", ("latitude", "longitude"), missval=-9999)
                )
                dst.put_values("latitude", location.lat)
                dst.add_variable(
                    VariableDef("longitude", "degree_east", ("latitude", "longitude"), missval=-9999)
                )
                dst.put_values("longitude", location.lon)

                step = "specific_humidity"
                derive_specific_humidity(src, dst, DIMS, logger=logger)

                for spec in CONVERSION_SPECS:
                    step = spec.dest_name
                    copyvals(
                        src,
                        spec.source_name,
                        dst,
                        spec.dest_name,
                        DIMS,
                        units2=spec.dest_units,
                        conv=spec.conv,
                        logger=logger,
                    )

                step = "precipitation_flux"
                derive_precip_flux(src, dst, DIMS, tvals, logger=logger)

                step = "eastward_wind / northward_wind"
                derive_wind_components(src, dst, DIMS, logger=logger)

                step = "global attributes"
                for attname, value in src.global_attributes().items():
                    dst.put_attribute(None, attname, value)

    except Exception as e:
        logger.error(f"{in_file}: failed during '{step}': {e}")
        raise FileConversionError(in_file, step, e) from e

    logger.info(f"Saved {out_file}")


def convert_ameriflux(
    in_path: str,
    in_prefix: str,
    outfolder: str,
    start_date,
    end_date,
    overwrite: bool = False,
    verbose: bool = False,
    geonames_username: str = GEONAMES_USERNAME,
    timezone_service: GeonamesTimezoneService | None = None,
    logger: logging.Logger | None = None,
    logs_dir: str = LOGS_DIR,
) -> pd.DataFrame:
    """
    Converts AmeriFlux L2 files to CF, for whole years from start_date to end_date.

    Parameters
    ----------
    in_path : str
        directory of the raw files, named <in_prefix>.<year>.nc
    in_prefix : str
        prefix of the raw and converted files
    outfolder : str
        directory of the converted files, created if needed
    start_date, end_date : str or datetime
        only the year is used
    overwrite : bool, optional
        replace existing converted files. Default is False.
    verbose : bool, optional
        also log to the console. Default is False.
    geonames_username : str, optional
        geonames account used for timezone lookups
    timezone_service : GeonamesTimezoneService, optional
        overrides the geonames lookup
    logger : logging.Logger, optional
        logger instance, a timestamped log file in logs_dir is set up otherwise
    logs_dir : str, optional
        directory for the log file

    Returns
    -------
    pd.DataFrame
        one row per year with a converted file (new or already existing): file, host, mimetype,
        formatname, startdate, enddate, dbfile.name
    """
    log_filepath = None
    if logger is None:
        logger, log_filepath = setup_logger(in_prefix, logs_dir=logs_dir, verbose=verbose)
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting...")

    if timezone_service is None:
        timezone_service = GeonamesTimezoneService(username=geonames_username)

    start_year = pd.to_datetime(start_date).year
    end_year = pd.to_datetime(end_date).year
    os.makedirs(outfolder, exist_ok=True)

    # Set up error handling.
    errors = {"File": [], "Time": [], "Error": []}
    end_api = datetime.now().strftime("%Y%m%d%H%M")
    host = socket.getfqdn()

    rows = []
    try:
        for year in range(start_year, end_year + 1):
            old_file = os.path.join(in_path, f"{in_prefix}.{year}.nc")
            new_file = os.path.join(outfolder, f"{in_prefix}.{year}.nc")

            if os.path.exists(new_file) and not overwrite:
                logger.debug(f"File '{new_file}' already exists, skipping to next file.")
            else:
                try:
                    convert_file(
                        old_file,
                        new_file,
                        timezone_service,
                        overwrite=overwrite,
                        logger=logger,
                    )
                except FileConversionError as e:
                    errors["File"].append(old_file)
                    errors["Time"].append(end_api)
                    errors["Error"].append(str(e))
                    continue

            # Only years with a converted file are listed
            rows.append(
                {
                    "file": new_file,
                    "host": host,
                    "mimetype": MIMETYPE,
                    "formatname": FORMATNAME,
                    "startdate": f"{year}-01-01 00:00:00",
                    "enddate": f"{year}-12-31 23:59:59",
                    "dbfile.name": in_prefix,
                }
            )

    finally:
        if errors["File"]:
            errors_path = os.path.join(outfolder, f"errors_{in_prefix}_{end_api}.csv")
            pd.DataFrame(errors).to_csv(errors_path, index=False)
            logger.warning(f"{len(errors['File'])} file(s) failed, see {errors_path}")
        if log_filepath is not None:
            close_logger(logger, log_filepath)

    return pd.DataFrame(
        rows,
        columns=["file", "host", "mimetype", "formatname", "startdate", "enddate", "dbfile.name"],
    )


def main():
    """Parses the command line arguments and runs the conversion."""
    parser = argparse.ArgumentParser(
        prog="AMERIFLUX_convert",
        description="""Converts AmeriFlux L2 netCDF files (one per year) into CF-convention netCDF files,
                       with standard variable names and units.""",
    )
    parser.add_argument("-i", "--in_path", required=True, help="Directory of the raw files.", type=str)
    parser.add_argument(
        "-p", "--in_prefix", required=True, help="Prefix of the raw and converted files, e.g. 'US-WCr'.", type=str
    )
    parser.add_argument("-o", "--outfolder", required=True, help="Directory of the converted files.", type=str)
    parser.add_argument("-s", "--start_date", required=True, help="Start date, only the year is used.", type=str)
    parser.add_argument("-e", "--end_date", required=True, help="End date, only the year is used.", type=str)
    parser.add_argument("--overwrite", action="store_true", help="Replace existing converted files.")
    parser.add_argument(
        "-u",
        "--geonames_username",
        default=GEONAMES_USERNAME,
        help=f"geonames account for timezone lookups (default: '{GEONAMES_USERNAME}').",
        type=str,
    )
    parser.add_argument("-l", "--logs_dir", default=LOGS_DIR, help="Directory for log files.", type=str)
    parser.add_argument("-v", "--verbose", action="store_true", help="Print log messages to the terminal.")

    args = parser.parse_args()

    results = convert_ameriflux(
        in_path=args.in_path,
        in_prefix=args.in_prefix,
        outfolder=args.outfolder,
        start_date=args.start_date,
        end_date=args.end_date,
        overwrite=args.overwrite,
        verbose=args.verbose,
        geonames_username=args.geonames_username,
        logs_dir=args.logs_dir,
    )
    print(results.to_string(index=False))


if __name__ == "__main__":
    main()
