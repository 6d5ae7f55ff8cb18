"""
Vegetation and water indices module.
Maps a closed set of index names to per-pixel band algebra on Sentinel-2 images.
"""

import ee
from enum import Enum
from typing import Callable, Dict

import config


class VegetationIndex(str, Enum):
    """Supported indices. Values are the exact band names written to exports."""

    NDVI = "NDVI"
    EVI = "EVI"
    KNDVI = "kNDVI"
    NIRV = "NIRv"
    NDWI = "NDWI"
    NMDI = "NMDI"


class UnknownIndexError(ValueError):
    """Raised when an index name is not one of the supported indices."""

    def __init__(self, name):
        self.name = name
        supported = ", ".join(index.value for index in VegetationIndex)
        message = f"Unknown index '{name}'. Supported indices: {supported}"

        # Names are case-sensitive, point at the intended spelling
        for index in VegetationIndex:
            if isinstance(name, str) and index.value.lower() == name.lower():
                message += f" (did you mean '{index.value}'?)"
                break

        super().__init__(message)


def parse_index(name) -> VegetationIndex:
    """
    Resolve an index name to a VegetationIndex.

    Args:
        name: Index name such as "NDVI" or "kNDVI", or a VegetationIndex.

    Returns:
        VegetationIndex: The matching member.

    Raises:
        UnknownIndexError: If the name is not a supported index.
    """
    if isinstance(name, VegetationIndex):
        return name
    try:
        return VegetationIndex(name)
    except ValueError:
        raise UnknownIndexError(name) from None


def scaled_band(image: ee.Image, band_key: str) -> ee.Image:
    """Select a band by its role (e.g. "nir") and convert DN to reflectance."""
    return image.select(config.S2_BANDS[band_key]).multiply(config.REFLECTANCE_SCALE)


def calculate_ndvi(image: ee.Image) -> ee.Image:
    """
    Calculate Normalized Difference Vegetation Index.

    NDVI = (NIR - Red) / (NIR + Red)

    Uses unscaled bands, the reflectance scale factor cancels out.

    Args:
        image: Sentinel-2 image with B8 and B4 bands.

    Returns:
        ee.Image: Single band image with NDVI values (-1 to 1).
    """
    return image.normalizedDifference([
        config.S2_BANDS["nir"],   # B8
        config.S2_BANDS["red"]    # B4
    ])


def calculate_evi(image: ee.Image) -> ee.Image:
    """
    Calculate Enhanced Vegetation Index.

    EVI = 2.5 * (NIR - Red) / (NIR + 6 * Red - 7.5 * Blue + 1)

    The constant term only makes sense on reflectance, so bands are scaled.
    """
    nir = scaled_band(image, "nir")
    red = scaled_band(image, "red")
    blue = scaled_band(image, "blue")

    denominator = nir.add(red.multiply(6)).subtract(blue.multiply(7.5)).add(1.0)

    return nir.subtract(red).divide(denominator).multiply(2.5)


def calculate_kndvi(image: ee.Image) -> ee.Image:
    """
    Calculate kernel NDVI.

    kNDVI = exp(-NDVI^2 / (2 * sigma^2)), sigma = (NIR + Red) / 2

    sigma is taken on scaled reflectance. Output lies in (0, 1].
    """
    ndvi = calculate_ndvi(image)
    sigma = scaled_band(image, "nir").add(scaled_band(image, "red")).multiply(0.5)

    return ndvi.pow(2).divide(sigma.pow(2).multiply(2)).multiply(-1).exp()


def calculate_nirv(image: ee.Image) -> ee.Image:
    """
    Calculate near-infrared reflectance of vegetation.

    NIRv = NDVI * NIR
    """
    return calculate_ndvi(image).multiply(scaled_band(image, "nir"))


def calculate_ndwi(image: ee.Image) -> ee.Image:
    """
    Calculate Normalized Difference Water Index (McFeeters, 1996).

    NDWI = (Green - NIR) / (Green + NIR)

    Args:
        image: Sentinel-2 image with B3 and B8 bands.

    Returns:
        ee.Image: Single band image with NDWI values (-1 to 1).
    """
    return image.normalizedDifference([
        config.S2_BANDS["green"],  # B3
        config.S2_BANDS["nir"]     # B8
    ])


def calculate_nmdi(image: ee.Image) -> ee.Image:
    """
    Calculate Normalized Multi-band Drought Index (Wang & Qu, 2007).

    NMDI = (NIR - (SWIR1 - SWIR2)) / (NIR + (SWIR1 - SWIR2))

    Sensitive to both soil and vegetation water content.

    Args:
        image: Sentinel-2 image with B8, B11 and B12 bands.

    Returns:
        ee.Image: Single band image with NMDI values.
    """
    nir = scaled_band(image, "nir")
    swir_diff = scaled_band(image, "swir_1").subtract(scaled_band(image, "swir_2"))

    return nir.subtract(swir_diff).divide(nir.add(swir_diff))


INDEX_FUNCTIONS: Dict[VegetationIndex, Callable[[ee.Image], ee.Image]] = {
    VegetationIndex.NDVI: calculate_ndvi,
    VegetationIndex.EVI: calculate_evi,
    VegetationIndex.KNDVI: calculate_kndvi,
    VegetationIndex.NIRV: calculate_nirv,
    VegetationIndex.NDWI: calculate_ndwi,
    VegetationIndex.NMDI: calculate_nmdi,
}

INDEX_FORMULAS = {
    VegetationIndex.NDVI: "(NIR - Red) / (NIR + Red)",
    VegetationIndex.EVI: "2.5 * (NIR - Red) / (NIR + 6 * Red - 7.5 * Blue + 1)",
    VegetationIndex.KNDVI: "exp(-NDVI^2 / (2 * sigma^2)), sigma = (NIR + Red) / 2",
    VegetationIndex.NIRV: "NDVI * NIR",
    VegetationIndex.NDWI: "(Green - NIR) / (Green + NIR)",
    VegetationIndex.NMDI: "(NIR - (SWIR1 - SWIR2)) / (NIR + (SWIR1 - SWIR2))",
}


def compute_index(image: ee.Image, index) -> ee.Image:
    """
    Compute one index as a single band image named after the index.

    The source acquisition's system:index and system:time_start are carried
    over, toBands() relies on the former and sorting on the latter.

    Args:
        image: Masked Sentinel-2 image.
        index: VegetationIndex or its exact name.

    Returns:
        ee.Image: Single band image.

    Raises:
        UnknownIndexError: If index is not supported.
    """
    index = parse_index(index)
    result = INDEX_FUNCTIONS[index](image).rename(index.value)
    return ee.Image(result.copyProperties(image, ["system:index", "system:time_start"]))


def describe_indices() -> Dict[str, str]:
    """Return index name -> formula text for every supported index."""
    return {index.value: INDEX_FORMULAS[index] for index in VegetationIndex}
