"""
odata_engine.constants - Protocol constants
============================================
"""

VERSION_4_0 = "4.0"
VERSION_2_0 = "2.0"
DEFAULT_VERSION = VERSION_4_0

# Headers
IF_MATCH_HEADER = "If-Match"
ODATA_VERSION_HEADER = "OData-Version"
ODATA_MAX_VERSION_HEADER = "OData-MaxVersion"

# Path segment literals
COUNT = "$count"
REF = "$ref"
VALUE = "$value"
METADATA = "$metadata"

# Primitive type prefix
EDM_PREFIX = "Edm."

# Cache
DEFAULT_CACHE_MAX_AGE = 30.0  # seconds

# JSON annotations, v4
ODATA_ETAG = "@odata.etag"
ODATA_TYPE = "@odata.type"
ODATA_CONTEXT = "@odata.context"
ODATA_COUNT = "@odata.count"
ODATA_NEXTLINK = "@odata.nextLink"
ODATA_VALUE = "value"

# JSON annotations, v2
ODATA_V2_METADATA = "__metadata"
ODATA_V2_COUNT = "__count"
ODATA_V2_NEXT = "__next"
ODATA_V2_DATA = "d"
ODATA_V2_RESULTS = "results"
