"""
convert_timezone.py

AmeriFlux L2 time axes are in local standard time. This script locates the site of a raw file and makes
sure its time units carry the UTC offset of that local standard time.

Functions
---------
- get_lat_lon: Site latitude and longitude from the global attributes of a raw file.
- format_utc_offset: Formats a UTC offset in hours as "+n" / "-n".
- resolve_time_units: Appends the site's UTC offset to the raw time units, unless already present.

Classes
-------
- GeoLocation: Site latitude and longitude.
- GeonamesTimezoneService: UTC offset lookup by coordinate, using the geonames web service.
"""

import inspect
import logging
from dataclasses import dataclass

import requests

from convert_config import GEONAMES_URL, GEONAMES_USERNAME
from convert_errors import GeolocationUnresolved
from nc_store import SourceFile


@dataclass(frozen=True)
class GeoLocation:
    lat: float
    lon: float


def _parse_site_location(site_location: str) -> GeoLocation:
    """
    Parses the free-text site_location attribute.

    Latitude is read from characters 20-28 and longitude from characters 40-48 (1-based, inclusive),
    which is the fixed layout of the AmeriFlux L2 attribute.
    """
    return GeoLocation(
        lat=float(site_location[19:28]), lon=float(site_location[39:48])
    )


def get_lat_lon(src: SourceFile, logger: logging.Logger | None = None) -> GeoLocation:
    """
    Site location of a raw file.

    Uses the site_location global attribute if it exists, otherwise geospatial_lat_min
    and geospatial_lon_min.

    Parameters
    ----------
    src : SourceFile
        raw file
    logger : logging.Logger, optional
        logger instance

    Returns
    -------
    GeoLocation
        site latitude and longitude

    Raises
    ------
    GeolocationUnresolved
        If neither attribute set gives a usable location.
    """
    logger = logger or logging.getLogger("sharedLogger")

    site_location = src.get_attribute(None, "site_location")
    if site_location is not None:
        try:
            return _parse_site_location(str(site_location))
        except ValueError:
            logger.warning(
                f"Could not parse site_location '{site_location}', trying geospatial bounds"
            )

    lat = src.get_attribute(None, "geospatial_lat_min")
    lon = src.get_attribute(None, "geospatial_lon_min")
    if lat is not None and lon is not None:
        try:
            return GeoLocation(lat=float(lat), lon=float(lon))
        except (TypeError, ValueError):
            pass

    raise GeolocationUnresolved(f"Could not get site location for file {src.path}.")


class GeonamesTimezoneService:
    """UTC offset lookup for a coordinate, through the geonames timezone web service.

    Parameters
    ----------
    username : str, optional
        geonames account name. Defaults to GEONAMES_USERNAME.
    url : str, optional
        timezone endpoint. Defaults to GEONAMES_URL.
    timeout : float, optional
        request timeout in seconds
    """

    def __init__(
        self,
        username: str = GEONAMES_USERNAME,
        url: str = GEONAMES_URL,
        timeout: float = 30,
    ):
        self.username = username
        self.url = url
        self.timeout = timeout

    def lookup(self, lat: float, lon: float) -> float:
        """Returns the UTC offset (gmtOffset), in hours, at lat / lon."""
        params = {"lat": lat, "lng": lon, "radius": 0, "username": self.username}
        result = requests.get(self.url, params=params, timeout=self.timeout)
        result.raise_for_status()
        data = result.json()

        if "gmtOffset" not in data:
            # geonames reports account / lookup errors in the body with a 200 status
            message = data.get("status", {}).get("message", "no gmtOffset in response")
            raise GeolocationUnresolved(
                f"Timezone lookup failed for ({lat}, {lon}): {message}"
            )
        return float(data["gmtOffset"])


def format_utc_offset(offset: float) -> str:
    """Formats a UTC offset in hours, e.g. 5 -> "+5", -6 -> "-6", 5.5 -> "+5.5"."""
    offset = float(offset)
    if offset.is_integer():
        offset = int(offset)
    if offset >= 0:
        return f"+{offset}"
    return str(offset)


def resolve_time_units(
    units: str,
    location: GeoLocation,
    service: GeonamesTimezoneService,
    logger: logging.Logger | None = None,
) -> str:
    """
    Returns the raw time units with the site's UTC offset appended.

    If the last token of `units` already starts with "+" or "-", the units are returned unchanged
    and no lookup is done.

    Parameters
    ----------
    units : str
        raw time units, e.g. "days since 2004-01-01 00:00:00"
    location : GeoLocation
        site location
    service : GeonamesTimezoneService
        anything with a lookup(lat, lon) -> hours method
    logger : logging.Logger, optional
        logger instance

    Returns
    -------
    str
        time units ending in the UTC offset, e.g. "days since 2004-01-01 00:00:00 -6"
    """
    logger = logger or logging.getLogger("sharedLogger")
    logger.info(f"{inspect.currentframe().f_code.co_name}: Starting...")

    tokens = (units or "").split()
    if not tokens:
        raise ValueError("Time dimension has no units.")

    if tokens[-1][0] in ("+", "-"):
        logger.info(f"Time units already carry UTC offset {tokens[-1]}")
        return units

    lst = format_utc_offset(service.lookup(location.lat, location.lon))
    logger.info(f"UTC offset for ({location.lat}, {location.lon}): {lst}")
    return f"{units} {lst}"
