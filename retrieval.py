"""
Satellite imagery retrieval module.
Handles the area of interest and Sentinel-2 catalog queries on GEE.
"""

import ee
from typing import Tuple

import config


def create_region_of_interest(
    latitude: float = None,
    longitude: float = None,
    buffer_m: float = None
) -> ee.Geometry:
    """
    Create a circular region of interest around given coordinates.

    Args:
        latitude: Center latitude. Defaults to config.LATITUDE.
        longitude: Center longitude. Defaults to config.LONGITUDE.
        buffer_m: Buffer radius in meters. Defaults to config.BUFFER_RADIUS_M.

    Returns:
        ee.Geometry: Circular geometry for the ROI.
    """
    lat = config.LATITUDE if latitude is None else latitude
    lon = config.LONGITUDE if longitude is None else longitude
    buffer = config.BUFFER_RADIUS_M if buffer_m is None else buffer_m

    roi = ee.Geometry.Point([lon, lat]).buffer(buffer)

    print(f"✓ Created ROI: center ({lat}, {lon}), radius {buffer}m")
    return roi


def query_sentinel2(
    roi: ee.Geometry,
    start_date: str = None,
    end_date: str = None,
    max_cloud_percent: float = None
) -> ee.ImageCollection:
    """
    Build the Sentinel-2 query without evaluating it.

    Scenes whose CLOUDY_PIXEL_PERCENTAGE exceeds max_cloud_percent are
    excluded entirely; this is separate from per-pixel SCL masking.

    Args:
        roi: Region of interest geometry.
        start_date: Start date (YYYY-MM-DD). Defaults to config.START_DATE.
        end_date: End date (YYYY-MM-DD, exclusive). Defaults to config.END_DATE.
        max_cloud_percent: Maximum scene cloud cover (inclusive).
                          Defaults to config.MAX_SCENE_CLOUD_PERCENT.

    Returns:
        ee.ImageCollection: Filtered collection.
    """
    start = start_date or config.START_DATE
    end = end_date or config.END_DATE
    if max_cloud_percent is None:
        max_cloud_percent = config.MAX_SCENE_CLOUD_PERCENT

    return (
        ee.ImageCollection(config.S2_COLLECTION)
        .filterBounds(roi)
        .filterDate(start, end)
        .filter(ee.Filter.lte("CLOUDY_PIXEL_PERCENTAGE", max_cloud_percent))
    )


def get_sentinel2_collection(
    roi: ee.Geometry,
    start_date: str = None,
    end_date: str = None,
    max_cloud_percent: float = None
) -> Tuple[ee.ImageCollection, int]:
    """
    Retrieve the filtered Sentinel-2 collection and its size.

    Returns:
        Tuple of (ee.ImageCollection, image_count)
    """
    collection = query_sentinel2(roi, start_date, end_date, max_cloud_percent)
    count = collection.size().getInfo()

    print(f"✓ Retrieved Sentinel-2 collection")
    print(f"  Date range: {start_date or config.START_DATE} to {end_date or config.END_DATE}")
    print(f"  Images found: {count}")

    return collection, count


def get_reference_projection(roi: ee.Geometry, band: str = None):
    """
    Get the projection of the first Sentinel-2 acquisition over the ROI.

    Independent of the date range: every index run, whatever its period,
    lands on the same native grid.

    Args:
        roi: Region of interest geometry.
        band: Band whose projection is borrowed. Defaults to config.REFERENCE_BAND.

    Returns:
        ee.Projection: Projection of the reference band.
    """
    band = band or config.REFERENCE_BAND

    reference = ee.Image(
        ee.ImageCollection(config.S2_COLLECTION)
        .filterBounds(roi)
        .first()
    )

    return reference.select(band).projection()


def get_collection_dates(collection: ee.ImageCollection) -> list:
    """
    Get list of acquisition dates in a collection.

    Args:
        collection: An ee.ImageCollection.

    Returns:
        list: Sorted list of distinct date strings.
    """
    dates = (
        collection
        .aggregate_array("system:time_start")
        .map(lambda d: ee.Date(d).format("YYYY-MM-dd"))
        .distinct()
        .sort()
        .getInfo()
    )
    return dates


def get_collection_metadata(collection: ee.ImageCollection) -> dict:
    """
    Get summary metadata for a collection.

    Returns:
        dict: Metadata including count, dates and scene cloud stats.
    """
    count = collection.size().getInfo()

    if count == 0:
        return {"count": 0, "dates": [], "date_range": None, "cloud_stats": None}

    dates = get_collection_dates(collection)

    cloud_stats = {
        "mean": collection.aggregate_mean("CLOUDY_PIXEL_PERCENTAGE").getInfo(),
        "min": collection.aggregate_min("CLOUDY_PIXEL_PERCENTAGE").getInfo(),
        "max": collection.aggregate_max("CLOUDY_PIXEL_PERCENTAGE").getInfo(),
    }

    return {
        "count": count,
        "dates": dates,
        "date_range": f"{dates[0]} to {dates[-1]}",
        "cloud_stats": cloud_stats
    }


def print_collection_info(collection: ee.ImageCollection, name: str = "Collection"):
    """Print detailed information about a collection."""
    metadata = get_collection_metadata(collection)

    print(f"\n{name} Info:")
    print("-" * 40)
    print(f"  Image count: {metadata['count']}")

    if metadata['count'] > 0:
        print(f"  Date range: {metadata['date_range']}")

        cs = metadata['cloud_stats']
        print(f"  Cloud cover: {cs['min']:.1f}% - {cs['max']:.1f}% (mean: {cs['mean']:.1f}%)")

        print(f"  Acquisition dates:")
        for date in metadata['dates'][:10]:
            print(f"    - {date}")
        if len(metadata['dates']) > 10:
            print(f"    ... and {len(metadata['dates']) - 10} more")

    print("-" * 40)

    return metadata
