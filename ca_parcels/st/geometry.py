"""Geometry predicates and measurements shared by the per-record and bulk exporters.

Geometries are never repaired here. A geometry either passes `is_valid_polygon` and is
measured, or the record is dropped by the caller.
"""
from functools import partial

import geopandas as gpd
import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry

from ca_parcels.utils.settings import SQFT_PER_SQ_DEGREE, SRID

POLYGONAL = ("Polygon", "MultiPolygon")

from_wkb_series = partial(gpd.GeoSeries.from_wkb, crs=SRID)


def is_valid_polygon(geometry: BaseGeometry | None) -> bool:
    """A single geometry is kept only if it is a non-empty, valid (Multi)Polygon."""
    if geometry is None:
        return False
    return geometry.geom_type in POLYGONAL and not geometry.is_empty and geometry.is_valid


def valid_polygons(gs: gpd.GeoSeries) -> np.ndarray:
    """Vectorised `is_valid_polygon`, returns a boolean mask aligned to `gs`."""
    mask = gs.notna() & gs.geom_type.isin(POLYGONAL) & ~gs.is_empty
    return (mask & gs.is_valid).to_numpy(dtype=bool)


def area_sqft(geometry: BaseGeometry | gpd.GeoSeries, factor: float = SQFT_PER_SQ_DEGREE):
    """Planar area in square feet from EPSG:4326 coordinates.

    The square-degree area is scaled by a single constant taken at 35°N. No latitude
    correction is applied, so results drift by about ±5% towards the state's north and
    south edges.

    Example
    ```py
    area_sqft(shapely.box(0, 0, 0.0004, 0.0003))
    >>> 13044.0
    ```
    """
    if isinstance(geometry, gpd.GeoSeries):
        # GeoSeries.area warns on geographic CRS, the planar degree area is intended here
        return shapely.area(geometry.to_numpy()) * factor
    return geometry.area * factor


def to_wkb(geometry: BaseGeometry) -> bytes:
    return shapely.to_wkb(geometry)


def from_wkb(wkb: bytes) -> BaseGeometry:
    return shapely.from_wkb(wkb)
