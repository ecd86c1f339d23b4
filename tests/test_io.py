from dataclasses import replace

import geopandas as gpd
import pandas as pd
import pyarrow.parquet as pq
import pytest
import shapely

from ca_parcels.datasets.buildings import buildings
from ca_parcels.datasets.parcels import parcels
from ca_parcels.io import UnknownFileExtension, read_file, read_manifest, write_parquet
from ca_parcels.utils.log import DataError

geoms = [
    "Polygon((-120 35, -120 35.001, -119.999 35.001, -119.999 35, -120 35))",
    "Polygon((-118.3 34.05, -118.3 34.0502, -118.2998 34.0502, -118.3 34.05))",
    "Polygon((-120 35, -119.99 35.01, -119.99 35, -120 35.01, -120 35))",
]


def _source_parcels() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {"APN": ["001-001-001", "002-002-002", "003-003-003"], "COUNTY": ["Kern", "Los Angeles", "Kern"], "OBJECTID": [1, 2, 3]},
        geometry=gpd.GeoSeries.from_wkt(geoms),
        crs=4326,
    )


def _write_read_dataset(df, path):
    write_parquet(df, path)
    return read_file(path)


def test_write_read_geoparquet(tmp_path):
    """Written files are GeoParquet with WKB geometries in EPSG:4326."""
    f = tmp_path / "test.parquet"
    gdf, _ = parcels.transform(_source_parcels())
    gdf_read = _write_read_dataset(gdf, f)

    assert gdf_read.crs.to_epsg() == 4326
    assert gdf_read.columns.tolist() == parcels.columns
    assert gdf_read.geometry.geom_equals_exact(gdf.geometry, tolerance=1e-9).all()
    assert b"geo" in pq.read_schema(f).metadata

    wkb = pd.read_parquet(f)["geometry"]
    assert isinstance(wkb[0], bytes)
    assert shapely.from_wkb(wkb[0]).equals_exact(gdf.geometry[0], tolerance=1e-9)


def test_write_replaces(tmp_path):
    f = tmp_path / "test.parquet"
    write_parquet(pd.DataFrame({"a": [1, 2, 3]}), f)
    write_parquet(pd.DataFrame({"a": [4]}), f)
    assert pd.read_parquet(f)["a"].tolist() == [4]


def test_write_parquet_type_error(tmp_path):
    with pytest.raises(TypeError):
        write_parquet([1, 2, 3], tmp_path / "test.parquet")


def test_write_parquet_keeps_previous_on_failure(tmp_path):
    f = tmp_path / "test.parquet"
    write_parquet(pd.DataFrame({"a": [1, 2, 3]}), f)
    with pytest.raises(TypeError):
        write_parquet([4], f)
    with pytest.raises(Exception):
        write_parquet(pd.DataFrame({"a": [object()]}), f)
    assert pd.read_parquet(f)["a"].tolist() == [1, 2, 3]
    assert [p.name for p in tmp_path.iterdir()] == ["test.parquet"]


def test_read_file_reprojects(tmp_path):
    """Sources in California Albers are read back into EPSG:4326."""
    f = tmp_path / "albers.parquet"
    _source_parcels().to_crs(3310).to_parquet(f)
    gdf = read_file(f)
    assert gdf.crs.to_epsg() == 4326
    xmin, ymin, xmax, ymax = gdf.total_bounds
    assert -121 < xmin < xmax < -118
    assert 34 < ymin < ymax < 36


def test_read_file_plain_wkb_parquet(tmp_path):
    """Parquet with a WKB geometry column but no geo metadata is still read."""
    f = tmp_path / "plain.parquet"
    src = _source_parcels()
    pd.DataFrame(src.drop(columns="geometry")).assign(geometry=src.geometry.to_wkb()).to_parquet(f)
    gdf = read_file(f)
    assert isinstance(gdf, gpd.GeoDataFrame)
    assert gdf.crs.to_epsg() == 4326
    assert len(gdf) == 3


def test_read_file_errors(tmp_path):
    with pytest.raises(DataError):
        read_file(tmp_path / "missing.geojson")
    f = tmp_path / "notes.txt"
    f.write_text("not geographic")
    with pytest.raises(UnknownFileExtension):
        read_file(f)


def test_refresh_geojson(tmp_path):
    """Full export from a GeoJSON source, with its manifest."""
    src = tmp_path / "parcels.geojson"
    _source_parcels().to_file(src, driver="GeoJSON")
    dataset = replace(parcels, source_path=str(src), output_dir=str(tmp_path / "release"), layer=None)

    manifest = dataset.refresh()

    gdf = gpd.read_parquet(dataset.path)
    assert gdf["apn"].tolist() == ["001-001-001", "002-002-002"]
    assert manifest.rows == len(gdf) == 2
    assert manifest.stats["dropped_invalid_geometry"] == 1
    assert manifest.stats["read"] == manifest.stats["written"] + 1
    assert manifest.crs == "EPSG:4326"
    assert manifest.provenance["spatial_resolution"] == "parcel"
    assert (gdf["export_timestamp"] == manifest.export_timestamp).all()
    assert manifest.verify(dataset.path)
    assert read_manifest(dataset.manifest_path) == manifest


def test_refresh_output_path(tmp_path):
    src = tmp_path / "buildings.parquet"
    gpd.GeoDataFrame({"release": [2, 2]}, geometry=gpd.GeoSeries.from_wkt(geoms[:2]), crs=4326).to_parquet(src)
    out = tmp_path / "out" / "footprints.parquet"

    manifest = buildings.refresh(source_path=str(src), output_path=str(out))

    assert manifest.file == "footprints.parquet"
    assert (tmp_path / "out" / "footprints.manifest.json").exists()
    assert gpd.read_parquet(out)["building_id"].tolist() == [1, 2]


def test_manifest_detects_change(tmp_path):
    src = tmp_path / "buildings.parquet"
    gpd.GeoDataFrame({"release": [2]}, geometry=gpd.GeoSeries.from_wkt(geoms[:1]), crs=4326).to_parquet(src)
    out = tmp_path / "footprints.parquet"
    manifest = buildings.refresh(source_path=str(src), output_path=str(out))
    write_parquet(pd.DataFrame({"a": [1]}), out)
    assert not manifest.verify(out)
