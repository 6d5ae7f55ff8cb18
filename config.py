"""
Configuration settings for the Sentinel-2 vegetation index stack exporter.
Modify these parameters to stack a different location, period or index set.
"""

# =============================================================================
# LOCATION SETTINGS
# =============================================================================

# Point of interest (latitude, longitude)
LATITUDE = 60.08733
LONGITUDE = 17.48075

# Buffer radius around the point in meters
BUFFER_RADIUS_M = 1000

# =============================================================================
# DATE RANGE
# =============================================================================

# Acquisition search interval (YYYY-MM-DD format, end date exclusive)
START_DATE = "2022-01-01"
END_DATE = "2024-12-31"

# =============================================================================
# SENTINEL-2 SETTINGS
# =============================================================================

# Sentinel-2 collection ID (Surface Reflectance, harmonized processing baseline)
S2_COLLECTION = "COPERNICUS/S2_SR_HARMONIZED"

# Maximum scene cloud percentage to include in collection (inclusive)
MAX_SCENE_CLOUD_PERCENT = 75

# Surface reflectance scale factor (DN -> reflectance)
REFLECTANCE_SCALE = 0.0001

# Band borrowed from the reference acquisition to fix the output grid
REFERENCE_BAND = "B4"

# =============================================================================
# SCENE CLASSIFICATION (SCL) SETTINGS
# =============================================================================

SCL_BAND = "SCL"

SCL_CLASSES = {
    0: "No data",
    1: "Saturated or defective",
    2: "Dark area pixels",
    3: "Cloud shadows",
    4: "Vegetation",
    5: "Bare soils",
    6: "Water",
    7: "Unclassified",
    8: "Cloud medium probability",
    9: "Cloud high probability",
    10: "Thin cirrus",
    11: "Snow",
}

# Pixels outside these classes are masked
SCL_KEEP_CLASSES = (4, 5)

# =============================================================================
# VEGETATION INDICES TO STACK
# =============================================================================

# Available indices (case-sensitive):
# - NDVI:  Normalized Difference Vegetation Index
# - EVI:   Enhanced Vegetation Index
# - kNDVI: Kernel NDVI
# - NIRv:  Near-infrared reflectance of vegetation
# - NDWI:  Normalized Difference Water Index (McFeeters)
# - NMDI:  Normalized Multi-band Drought Index

VI_LIST = ["NDVI"]

# =============================================================================
# EXPORT SETTINGS
# =============================================================================

# Export destination: "drive", "cloud", "asset"
EXPORT_DESTINATION = "drive"

# Google Drive folder name (created if doesn't exist)
OUTPUT_FOLDER = "S2_timeseries"

# Cloud Storage bucket (only used if EXPORT_DESTINATION is "cloud")
GCS_BUCKET = None

# Asset folder (only used if EXPORT_DESTINATION is "asset"),
# e.g. "projects/my-project/assets/s2_stacks"
ASSET_ROOT = None

# Export file prefix
FILE_PREFIX = "S2H"

# Export scale in meters (resolution)
EXPORT_SCALE = 10  # Sentinel-2 native resolution

# Maximum pixels for export (GEE limit is 1e13)
MAX_PIXELS = 1e13

# =============================================================================
# BAND MAPPINGS
# =============================================================================

# Sentinel-2 band names for calculations
S2_BANDS = {
    "blue": "B2",
    "green": "B3",
    "red": "B4",
    "nir": "B8",
    "swir_1": "B11",
    "swir_2": "B12",
}
