from pathlib import Path

import geopandas as gpd
import pandas as pd
import pyarrow.parquet as pq

from ca_parcels.st.geometry import from_wkb_series
from ca_parcels.utils.log import LOG, DataError
from ca_parcels.utils.settings import SRID
from ca_parcels.utils.types import DataFrame, GeoDataFrame, PandasDataFrame


class UnknownFileExtension(Exception):
    """Don't know how to read file with extension."""


OGR_SUFFIXES = {".geojson", ".json", ".geojsonl", ".gpkg", ".gdb", ".shp", ".zip", ".fgb"}


def _read_geoparquet(path: Path) -> GeoDataFrame:
    """Read GeoParquet, or plain parquet holding a WKB `geometry` column without geo metadata."""
    if path.is_dir() or b"geo" in (pq.read_schema(path).metadata or {}):
        return gpd.read_parquet(path)
    pdf = pd.read_parquet(path)
    if "geometry" not in pdf.columns:
        raise DataError(f"No geometry column in: {path}")
    return gpd.GeoDataFrame(pdf.drop(columns="geometry"), geometry=from_wkb_series(pdf["geometry"]))


def ensure_crs(gdf: GeoDataFrame, label: str = "source") -> GeoDataFrame:
    """Name the geometry column "geometry" and put it in EPSG:4326. Data without a CRS is assumed to be EPSG:4326."""
    if gdf.geometry.name != "geometry":
        gdf = gdf.rename_geometry("geometry")
    if gdf.crs is None:
        LOG.warning(f"No CRS on {label}, assuming EPSG:{SRID}.")
        gdf = gdf.set_crs(SRID)
    elif gdf.crs.to_epsg() != SRID:
        LOG.info(f"Reprojecting {label} from {gdf.crs.to_string()} to EPSG:{SRID}.")
        gdf = gdf.to_crs(SRID)
    return gdf


def read_file(source_path: str, layer: int | str | None = None) -> GeoDataFrame:
    """Read a vector source into a GeoDataFrame, with the geometry column named "geometry".

    OGR formats are read with pyogrio, (Geo)Parquet with geopandas/pyarrow, and the result is
    reprojected to EPSG:4326. Sources without a CRS are assumed to be EPSG:4326 already.

    Parameters:
        source_path: Path to the file, or directory for FileGDB and partitioned parquet.
        layer: Layer name or index for multi-layer sources.
    """
    path = Path(source_path)
    if not path.exists():
        raise DataError(f"Source not found: {path}")
    if path.suffix == ".parquet" or (path.is_dir() and list(path.glob("*.parquet"))):
        df = _read_geoparquet(path)
    elif path.suffix.lower() in OGR_SUFFIXES or path.is_dir():
        df = gpd.read_file(path, layer=layer, engine="pyogrio", use_arrow=True)
    else:
        raise UnknownFileExtension(path.suffix)
    df = ensure_crs(df, path.name)
    LOG.info(f"Read {len(df):,} rows from: {path}")
    return df


def write_parquet(df: DataFrame, path: str):
    """Write a DataFrame to a single parquet file.
    Takes in a Pandas or GeoPandas dataframe and replaces any already written file only once
    the new one is complete. GeoDataFrames are written as GeoParquet with WKB geometries.

    Parameters:
        df: Dataframe to be written as (geo)parquet.
        path: Output path to write the data into.
    """
    if not isinstance(df, PandasDataFrame):
        raise TypeError(f"Expected GeoPandas or Pandas dataframe, received {type(df)}.")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # Written beside the target then swapped in, so a failed write leaves the previous file.
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        if isinstance(df, GeoDataFrame):
            df.to_parquet(tmp, index=False, geometry_encoding="WKB", schema_version="1.0.0")
        else:
            df.to_parquet(tmp, index=False)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    if path.exists():
        LOG.warning(f"Replacing Dataset: {path}")
    tmp.replace(path)
