"""
Time stacking module.
Builds per-index Sentinel-2 collections and collapses them into one
multiband image, one band per acquisition in time order.
"""

import ee
from dataclasses import dataclass
from typing import List, Sequence

import config
from cloud import mask_s2_scl
from indices import VegetationIndex, compute_index, parse_index
from retrieval import get_reference_projection, query_sentinel2


class StackError(Exception):
    pass


class EmptyCollectionError(StackError):
    """No acquisition passed the spatial, temporal and cloud cover filters."""

    def __init__(self, index: VegetationIndex, start_date: str, end_date: str):
        self.index = index
        super().__init__(
            f"No Sentinel-2 acquisitions for {index.value} between "
            f"{start_date} and {end_date}; try a longer date range or a higher "
            f"cloud cover threshold"
        )


@dataclass
class StackedRaster:
    """A time stack ready for export."""

    index: VegetationIndex
    image: ee.Image
    band_names: List[str]
    acquisition_ids: List[str]

    @property
    def count(self) -> int:
        return len(self.band_names)


def band_name(index: VegetationIndex, acquisition_id: str) -> str:
    """Stacked band label, e.g. NDVI_20220105T104329_20220105T104325_T33VXG."""
    return f"{index.value}_{acquisition_id}"


def build_index_collection(
    index,
    roi: ee.Geometry,
    start_date: str = None,
    end_date: str = None,
    max_cloud_percent: float = None,
    keep_classes: Sequence[int] = None
) -> ee.ImageCollection:
    """
    Build a time-sorted single band collection for one index.

    Every scene passing the filters maps to exactly one index image; SCL
    masking hides pixels but never removes scenes.

    Args:
        index: VegetationIndex or its exact name.
        roi: Region of interest geometry.
        start_date: Start date (YYYY-MM-DD).
        end_date: End date (YYYY-MM-DD, exclusive).
        max_cloud_percent: Scene cloud cover threshold (inclusive).
        keep_classes: SCL classes left unmasked.

    Returns:
        ee.ImageCollection: Index images sorted by system:time_start ascending.
    """
    index = parse_index(index)

    return (
        query_sentinel2(roi, start_date, end_date, max_cloud_percent)
        .map(lambda image: mask_s2_scl(image, keep_classes))
        .map(lambda image: compute_index(image, index))
        .sort("system:time_start")
    )


def stack_collection(
    collection: ee.ImageCollection,
    index,
    roi: ee.Geometry,
    projection,
    acquisition_ids: List[str]
) -> ee.Image:
    """
    Collapse an index collection into one multiband image.

    Args:
        collection: Time-sorted single band collection.
        index: Index the collection holds.
        roi: Region to clip to.
        projection: Target projection (see get_reference_projection).
        acquisition_ids: system:index of each image, in collection order.

    Returns:
        ee.Image: Stack with bands named <INDEX>_<system:index>.
    """
    index = parse_index(index)
    names = [band_name(index, acquisition_id) for acquisition_id in acquisition_ids]

    stack = collection.toBands().rename(names).clip(roi)

    return stack.reproject(crs=projection)


def build_stack(index, roi: ee.Geometry, settings) -> StackedRaster:
    """
    Build the clipped, reprojected time stack of one index.

    Args:
        index: VegetationIndex or its exact name.
        roi: Region of interest geometry.
        settings: StackConfig with date range, cloud threshold and SCL classes.

    Returns:
        StackedRaster: The stack and its band labels.

    Raises:
        EmptyCollectionError: If no acquisition matches the filters.
    """
    index = parse_index(index)

    collection = build_index_collection(
        index,
        roi,
        settings.start_date,
        settings.end_date,
        settings.max_scene_cloud_percent,
        settings.keep_classes
    )

    acquisition_ids = collection.aggregate_array("system:index").getInfo()

    print(f"✓ {index.value} collection: {len(acquisition_ids)} acquisitions")

    if not acquisition_ids:
        raise EmptyCollectionError(index, settings.start_date, settings.end_date)

    projection = get_reference_projection(roi, config.REFERENCE_BAND)
    image = stack_collection(collection, index, roi, projection, acquisition_ids)

    names = [band_name(index, acquisition_id) for acquisition_id in acquisition_ids]

    print(f"  Bands ({len(names)}):")
    for name in names[:10]:
        print(f"    - {name}")
    if len(names) > 10:
        print(f"    ... and {len(names) - 10} more")

    return StackedRaster(
        index=index,
        image=image,
        band_names=names,
        acquisition_ids=list(acquisition_ids)
    )
