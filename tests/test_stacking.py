import numpy as np
import numpy.ma as ma
import pytest

from fake_ee import make_acquisition, to_millis
from indices import VegetationIndex
from retrieval import (
    create_region_of_interest,
    get_collection_dates,
    get_reference_projection,
    get_sentinel2_collection,
)
from stacking import (
    EmptyCollectionError,
    StackError,
    band_name,
    build_index_collection,
    build_stack,
)


JANUARY_IDS = [
    "20220105T103421_20220105T103419_T33VXG",
    "20220115T103401_20220115T103359_T33VXG",
    "20220125T103301_20220125T103258_T33VXG",
]


@pytest.fixture
def roi(fake_ee):
    return create_region_of_interest()


def test_band_name():
    assert band_name(VegetationIndex.KNDVI, "20220105T103421_20220105T103419_T33VXG") == \
        "kNDVI_20220105T103421_20220105T103419_T33VXG"


def test_scene_cloud_filter_is_inclusive(january_catalog, roi):
    collection, count = get_sentinel2_collection(roi, "2022-01-01", "2022-01-31", 75)

    assert count == 3
    assert "20220110T103319_20220110T103317_T33VXG" not in \
        collection.aggregate_array("system:index").getInfo()


def test_collection_is_sorted_by_time(january_catalog, roi):
    collection = build_index_collection("NDVI", roi, "2022-01-01", "2022-01-31", 75, (4, 5))

    times = collection.aggregate_array("system:time_start").getInfo()
    assert times == sorted(times)
    assert collection.aggregate_array("system:index").getInfo() == JANUARY_IDS


def test_collection_holds_one_index_image_per_scene(january_catalog, roi):
    collection = build_index_collection("EVI", roi, "2022-01-01", "2022-01-31", 75, (4, 5))

    assert collection.size().getInfo() == 3
    for image in collection.images:
        assert list(image.bands) == ["EVI"]


def test_masking_keeps_scenes(january_catalog, roi):
    # Only water is kept, the 2022-01-15 scene ends up fully masked
    collection = build_index_collection("NDVI", roi, "2022-01-01", "2022-01-31", 75, (6,))

    assert collection.size().getInfo() == 3


def test_reference_projection_ignores_date_range(january_catalog, roi):
    assert get_reference_projection(roi) == "EPSG:3006"


def test_stack_band_count_and_names(january_catalog, roi, january_settings):
    stacked = build_stack("NDVI", roi, january_settings)

    assert stacked.count == 3
    assert stacked.acquisition_ids == JANUARY_IDS
    assert stacked.band_names == [f"NDVI_{i}" for i in JANUARY_IDS]
    assert list(stacked.image.bands) == stacked.band_names


def test_stack_band_order_follows_acquisition_time(january_catalog, roi, january_settings):
    stacked = build_stack(VegetationIndex.NDWI, roi, january_settings)

    dates = [name.split("_")[1][:8] for name in stacked.band_names]
    assert dates == sorted(dates)


def test_stack_is_clipped_and_reprojected(january_catalog, roi, january_settings):
    stacked = build_stack("NDVI", roi, january_settings)

    assert stacked.image.clip_region is roi
    assert stacked.image.projection_ == "EPSG:3006"


@pytest.mark.parametrize("index", list(VegetationIndex))
def test_stack_masks_disqualified_pixels(january_catalog, roi, january_settings, index):
    stacked = build_stack(index, roi, january_settings)

    # 2022-01-05 scene has SCL [[4, 5], [9, 6]]
    first = stacked.image.band(stacked.band_names[0])
    np.testing.assert_array_equal(ma.getmaskarray(first), [[False, False], [True, True]])


def test_stack_values(january_catalog, roi, january_settings):
    stacked = build_stack("NDVI", roi, january_settings)

    mid = stacked.image.band(stacked.band_names[1])
    expected = np.array([[2400 / 3600, -700 / 1100], [1100 / 2500, 3900 / 4500]])
    np.testing.assert_allclose(mid, expected)

    for name in stacked.band_names:
        values = stacked.image.band(name).compressed()
        assert np.all(values >= -1) and np.all(values <= 1)


def test_end_date_is_exclusive(fake_ee, roi, january_settings):
    fake_ee.catalog.append(make_acquisition("on_end_date", "2022-01-31"))

    with pytest.raises(EmptyCollectionError):
        build_stack("NDVI", roi, january_settings)


def test_empty_collection_raises(fake_ee, roi, january_settings):
    with pytest.raises(EmptyCollectionError) as excinfo:
        build_stack("NMDI", roi, january_settings)

    assert isinstance(excinfo.value, StackError)
    assert excinfo.value.index is VegetationIndex.NMDI
    assert "2022-01-01" in str(excinfo.value)


def test_scene_times_are_preserved(january_catalog, roi):
    collection = build_index_collection("kNDVI", roi, "2022-01-01", "2022-01-31", 75, (4, 5))

    assert collection.images[0].properties["system:time_start"] == to_millis("2022-01-05")


def test_collection_dates_are_distinct_and_sorted(january_catalog, roi):
    january_catalog.catalog.append(
        make_acquisition("20220115T103401_20220115T103359_T33VXH", "2022-01-15", cloud=40.0)
    )
    collection, count = get_sentinel2_collection(roi, "2022-01-01", "2022-01-31", 75)

    assert count == 4
    assert get_collection_dates(collection) == ["2022-01-05", "2022-01-15", "2022-01-25"]


def test_build_stack_lists_every_band(january_catalog, roi, january_settings, capsys):
    build_stack("NDVI", roi, january_settings)

    out = capsys.readouterr().out
    assert "Bands (3):" in out
    for acquisition_id in JANUARY_IDS:
        assert f"- NDVI_{acquisition_id}" in out


def test_build_stack_truncates_long_band_lists(fake_ee, roi, january_settings, capsys):
    fake_ee.catalog.extend(
        make_acquisition(f"202201{day:02d}T103000_202201{day:02d}T103000_T33VXG", f"2022-01-{day:02d}")
        for day in range(1, 13)
    )

    build_stack("NDVI", roi, january_settings)

    out = capsys.readouterr().out
    assert "Bands (12):" in out
    assert "... and 2 more" in out
