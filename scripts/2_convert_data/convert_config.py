"""convert_config.py

Centralized constants for the AmeriFlux to CF conversion stage.
Enables programmer to change sentinels, endpoints, or naming in one place if needed.

"""

# Raw AmeriFlux missing value codes: -9999 = missing value, -6999 = unreported value
MISSING_SENTINELS = (-6999, -9999)

# Fill value written to converted files
MISSING_VALUE = -6999

# Raw time dimension of the AmeriFlux L2 files
RAW_TIME_DIM = "DTIME"

# 0.02083 (fraction of a day) = 30 minutes
REFERENCE_INTERVAL = 0.02083
REFERENCE_MINUTES = 30

# Geonames timezone lookup
GEONAMES_URL = "http://api.geonames.org/timezoneJSON"
GEONAMES_USERNAME = "carya"

# Results manifest
MIMETYPE = "application/x-netcdf"
FORMATNAME = "CF"

LOGS_DIR = "convert_logs"
