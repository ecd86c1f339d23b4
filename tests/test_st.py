import geopandas as gpd
import pytest
import shapely

from ca_parcels.st.geometry import area_sqft, from_wkb, is_valid_polygon, to_wkb, valid_polygons
from ca_parcels.utils.settings import SQFT_PER_SQ_DEGREE

geometries = [
    "Polygon((-120 35, -120 35.001, -119.999 35.001, -119.999 35, -120 35))",  # valid
    "MultiPolygon(((-120 35, -120 35.001, -119.999 35.001, -120 35)), ((-118 34, -118 34.001, -117.999 34, -118 34)))",  # valid
    "Polygon((-120 35, -119.99 35.01, -119.99 35, -120 35.01, -120 35))",  # bowtie
    "LineString(-120 35, -119.99 35.01)",
    "Point(-120 35)",
    "Polygon EMPTY",
]
expected = [True, True, False, False, False, False]


def test_is_valid_polygon():
    gs = gpd.GeoSeries.from_wkt(geometries)
    results = [is_valid_polygon(g) for g in gs]
    assert results == expected, results
    assert not is_valid_polygon(None)


def test_valid_polygons_matches_scalar():
    """The vectorised mask must agree with the per-record predicate, including nulls."""
    gs = gpd.GeoSeries.from_wkt(geometries + [None], crs=4326)
    mask = valid_polygons(gs)
    assert mask.tolist() == expected + [False], mask


def test_area_sqft_example():
    """0.00000012 square degrees at the 35°N constant is roughly 13,044 square feet."""
    g = shapely.box(0, 0, 0.0004, 0.0003)
    assert g.area == pytest.approx(0.00000012)
    assert area_sqft(g) == pytest.approx(13_044)


def test_area_sqft_series_matches_scalar():
    gs = gpd.GeoSeries.from_wkt(geometries[:2], crs=4326)
    areas = area_sqft(gs)
    assert areas.tolist() == pytest.approx([g.area * SQFT_PER_SQ_DEGREE for g in gs])


def test_area_sqft_has_no_latitude_correction():
    """Same square-degree shape measures the same anywhere in the state."""
    south = shapely.box(-117, 32.6, -116.999, 32.601)
    north = shapely.box(-124, 41.9, -123.999, 41.901)
    assert area_sqft(south) == pytest.approx(area_sqft(north))


@pytest.mark.parametrize("wkt", geometries[:2])
def test_wkb_round_trip(wkt):
    g = shapely.from_wkt(wkt)
    g_read = from_wkb(to_wkb(g))
    assert g_read.equals_exact(g, tolerance=1e-9), g_read.wkt
