import importlib

import pytest

from fake_ee import FakeEE, make_acquisition
from settings import StackConfig


PATCHED_MODULES = ("auth", "cloud", "indices", "retrieval", "stacking", "export", "pipeline")

FOOTPRINT_ELSEWHERE = (-81.0, -2.5, -80.0, -1.0)


@pytest.fixture
def fake_ee(monkeypatch):
    """Replace the Earth Engine client in every module that talks to it."""
    fake = FakeEE()
    for name in PATCHED_MODULES:
        module = importlib.import_module(name)
        monkeypatch.setattr(module, "ee", fake)
    return fake


@pytest.fixture
def january_catalog(fake_ee):
    """
    Catalog around the default point. Within January 2022 three scenes pass
    the 75% cloud filter; they are listed out of time order.
    """
    fake_ee.catalog.extend([
        make_acquisition("20210612T102021_20210612T102024_T33VXG", "2021-06-12",
                         projection="EPSG:3006"),
        make_acquisition("20220125T103301_20220125T103258_T33VXG", "2022-01-25",
                         cloud=75.0, nir=2500, red=700),
        make_acquisition("20220105T103421_20220105T103419_T33VXG", "2022-01-05",
                         cloud=12.5, scl=[[4, 5], [9, 6]]),
        make_acquisition("20220110T103319_20220110T103317_T33VXG", "2022-01-10",
                         cloud=80.0),
        make_acquisition("20220115T103401_20220115T103359_T33VXG", "2022-01-15",
                         cloud=30.0, nir=[[3000, 200], [1800, 4200]], red=[[600, 900], [700, 300]]),
        make_acquisition("20220203T103259_20220203T103256_T33VXG", "2022-02-03"),
        make_acquisition("20220112T155001_20220112T155003_T17MLT", "2022-01-12",
                         footprint=FOOTPRINT_ELSEWHERE, projection="EPSG:32717"),
    ])
    return fake_ee


@pytest.fixture
def january_settings():
    return StackConfig(start_date="2022-01-01", end_date="2022-01-31", indices=("NDVI",))
