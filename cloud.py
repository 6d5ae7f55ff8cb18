"""
Pixel quality masking module.
Hides Sentinel-2 pixels using the Scene Classification Layer (SCL).
"""

import ee
from typing import Sequence

import config


def build_scl_mask(scl: ee.Image, keep_classes: Sequence[int]) -> ee.Image:
    """
    Build a boolean mask that is 1 where the SCL class is in keep_classes.

    Args:
        scl: Single band SCL image.
        keep_classes: SCL class codes to keep (see config.SCL_CLASSES).

    Returns:
        ee.Image: Mask image (1 = keep, 0 = hide).
    """
    classes = list(keep_classes)
    if not classes:
        raise ValueError("keep_classes must contain at least one SCL class")

    mask = scl.eq(classes[0])
    for code in classes[1:]:
        mask = mask.Or(scl.eq(code))

    return mask


def mask_s2_scl(image: ee.Image, keep_classes: Sequence[int] = None) -> ee.Image:
    """
    Mask pixels whose SCL class is not accepted.

    Default accepted classes are 4 (vegetation) and 5 (bare soils), so clouds,
    shadows, water, snow and no-data pixels are hidden in every band. Pixel
    values are untouched and the image itself is never dropped.

    Args:
        image: Sentinel-2 Level-2A image with SCL band.
        keep_classes: SCL classes to keep. Defaults to config.SCL_KEEP_CLASSES.

    Returns:
        ee.Image: Image with disqualified pixels masked.
    """
    if keep_classes is None:
        keep_classes = config.SCL_KEEP_CLASSES

    scl = image.select(config.SCL_BAND)

    return image.updateMask(build_scl_mask(scl, keep_classes))
