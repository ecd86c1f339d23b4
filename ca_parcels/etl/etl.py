"""Classes for exporting source records to fixed-schema GeoParquet files.

This module contains the ExportDataset base class and the small value types it stamps onto
every row. A dataset subclass declares a raw pandera model (source column names as aliases),
an output pandera model (the published schema), the area bounds for its kind of feature, and
how to fill its dataset-specific columns. Everything else, filtering, area, provenance,
validation and writing, happens here.

Every source record maps to zero or one output record, independently of the others.
"""
from dataclasses import asdict, dataclass
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from pandera import DataFrameModel
from pandera.errors import SchemaError, SchemaErrors

from ca_parcels.io import ExportManifest, ensure_crs, read_file, write_manifest, write_parquet
from ca_parcels.st.geometry import area_sqft, valid_polygons
from ca_parcels.utils.log import LOG, DataError
from ca_parcels.utils.misc import integral_text, is_snake_case, utc_timestamp
from ca_parcels.utils.settings import CRS, FILE_FMT, MANIFEST_FMT, OUTPUT_DIR, SQFT_PER_SQ_DEGREE


@dataclass(frozen=True)
class Provenance:
    """Where a row came from. The same block is stamped on every row of a dataset.

    Attributes:
        source_system: The organisation or system the data was taken from.
        source_table: The table, layer or release file within that system.
        spatial_resolution: What one row represents, "parcel" or "building".
    """

    source_system: str
    source_table: str
    spatial_resolution: str

    def stamp(self, export_timestamp: str) -> dict:
        return dict(asdict(self), export_timestamp=export_timestamp)


@dataclass
class ExportStats:
    """Aggregate row counts for one export, records are never reported individually."""

    read: int = 0
    dropped_missing_id: int = 0
    dropped_invalid_geometry: int = 0
    dropped_area_out_of_range: int = 0
    written: int = 0

    @property
    def dropped(self) -> int:
        return self.dropped_missing_id + self.dropped_invalid_geometry + self.dropped_area_out_of_range

    @property
    def dict(self) -> dict[str, int]:
        return asdict(self)

    def log(self, name: str):
        LOG.info(
            f"'{name}': read {self.read:,}, written {self.written:,}, dropped {self.dropped:,} "
            f"(missing id {self.dropped_missing_id:,}, invalid geometry {self.dropped_invalid_geometry:,}, "
            f"area out of range {self.dropped_area_out_of_range:,})."
        )


def _to_record(row: pd.Series) -> dict:
    """A row as a plain dict, with pandas missing values as None."""
    return {k: None if pd.api.types.is_scalar(v) and pd.isna(v) else v for k, v in row.items()}


@dataclass
class ExportDataset:
    """Base class for a published dataset.

    Subclasses set the models and implement `_attributes`, and optionally `_has_id`.

    Attributes:
        name: snake_case name, used for the output file name.
        source_path: The path to the source vector file.
        provenance: The provenance block stamped on every row.
        license_note: License text stamped on every row.
        raw_model: pandera model of the source, with source column names as aliases.
        model: pandera model of the published output.
        area_column: Output column holding the computed area.
        area_min_sqft: Inclusive lower bound on area.
        area_max_sqft: Exclusive upper bound on area.
        layer: Layer of the source to read, for multi-layer sources.
        output_dir: Directory the parquet and manifest are written into.
        sqft_per_sq_degree: Conversion constant from square degrees to square feet.
    """

    name: str
    source_path: str
    provenance: Provenance
    license_note: str
    raw_model: type[DataFrameModel]
    model: type[DataFrameModel]
    area_column: str
    area_min_sqft: float
    area_max_sqft: float
    layer: str | None = None
    output_dir: str = OUTPUT_DIR
    sqft_per_sq_degree: float = SQFT_PER_SQ_DEGREE

    def __post_init__(self):
        assert is_snake_case(self.name), f"Dataset name must be snake_case: {self.name}"

    @property
    def path(self) -> str:
        return str(Path(self.output_dir) / FILE_FMT.format(name=self.name))

    @property
    def manifest_path(self) -> str:
        return str(Path(self.output_dir) / MANIFEST_FMT.format(name=self.name))

    @property
    def columns(self) -> list[str]:
        return list(self.model.to_schema().columns)

    def in_area_range(self, area: float | np.ndarray):
        return (self.area_min_sqft <= area) & (area < self.area_max_sqft)

    def rename(self, df: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Fill absent optional source columns with nulls, coerce source types, and rename from source names to field names."""
        schema = self.raw_model.to_schema()
        for alias, column in schema.columns.items():
            if alias in df.columns and isinstance(column.dtype.type, pd.StringDtype):
                df = df.assign(**{alias: integral_text(df[alias])})
            if alias not in df.columns and not column.required:
                df = df.assign(**{alias: pd.Series(None, index=df.index, dtype=object)})
        try:
            df = self.raw_model.validate(df)
        except SchemaError as err:
            raise DataError(f"Source for '{self.name}' does not match {self.raw_model.__name__}: {err}") from err
        mapping = {field.name: field.original_name for _, field in self.raw_model.__fields__.values()}
        return df.rename(columns=mapping)

    def _has_id(self, df: gpd.GeoDataFrame) -> np.ndarray:
        """Rows carrying the identifier the dataset needs from source. Default, all rows."""
        return np.ones(len(df), dtype=bool)

    def _attributes(self, df: gpd.GeoDataFrame, start_id: int) -> gpd.GeoDataFrame:
        """Fill the dataset-specific output columns on rows that passed every filter."""
        raise NotImplementedError("ExportDataset._attributes")

    def transform(self, gdf: gpd.GeoDataFrame, export_timestamp: str | None = None, start_id: int = 1) -> tuple[gpd.GeoDataFrame, ExportStats]:
        """Export a whole source table.

        Parameters:
            gdf: Source rows with source column names, reprojected to EPSG:4326 if needed.
            export_timestamp: Stamped on every row, defaults to now.
            start_id: First sequential identifier, for datasets that number their rows.

        Returns:
            The validated output rows in schema column order, and the row counts.
        """
        if export_timestamp is None:
            export_timestamp = utc_timestamp()
        if not isinstance(gdf, gpd.GeoDataFrame) or gdf.active_geometry_name is None:
            raise DataError(f"Source for '{self.name}' has no geometry column.")
        stats = ExportStats(read=len(gdf))
        df = self.rename(ensure_crs(gdf, self.name).reset_index(drop=True))
        # Missing source ids fall back to the row position in the source.
        position = pd.Series(np.arange(len(df)).astype(str), index=df.index)
        df["source_id"] = df["source_id"].astype("string").fillna(position)

        keep = self._has_id(df)
        stats.dropped_missing_id = int((~keep).sum())
        df = df.loc[keep]

        keep = valid_polygons(df.geometry)
        stats.dropped_invalid_geometry = int((~keep).sum())
        df = df.loc[keep]

        area = area_sqft(df.geometry, self.sqft_per_sq_degree)
        keep = self.in_area_range(area)
        stats.dropped_area_out_of_range = int((~keep).sum())
        df = df.loc[keep].assign(**{self.area_column: area[keep]})

        df = self._attributes(df, start_id).assign(
            **self.provenance.stamp(export_timestamp),
            license_note=self.license_note,
        )
        gdf_out = gpd.GeoDataFrame(df.loc[:, self.columns].reset_index(drop=True), geometry="geometry", crs=CRS)
        gdf_out = self.validate(gdf_out)
        stats.written = len(gdf_out)
        LOG.debug(f"'{self.name}' filtered {stats.dropped:,} of {stats.read:,} rows.")
        return gdf_out, stats

    def export_record(self, record: dict, export_timestamp: str | None = None, start_id: int = 1) -> dict | None:
        """Export one source record, returning the output record or None when it is filtered out.

        `record` uses source column names and holds a shapely geometry under "geometry".
        """
        gdf = gpd.GeoDataFrame([record], geometry="geometry", crs=CRS)
        gdf_out, _ = self.transform(gdf, export_timestamp=export_timestamp, start_id=start_id)
        if gdf_out.empty:
            return None
        return _to_record(gdf_out.iloc[0])

    def validate(self, gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        try:
            return self.model.validate(gdf, lazy=True)
        except SchemaErrors as err:
            raise DataError(f"Output for '{self.name}' failed {self.model.__name__}:\n{err.failure_cases}") from err

    def read(self, source_path: str | None = None) -> gpd.GeoDataFrame:
        return read_file(source_path or self.source_path, layer=self.layer)

    def refresh(self, source_path: str | None = None, output_path: str | None = None) -> ExportManifest:
        """Read the source, export it, and write the parquet file and its manifest."""
        LOG.info(f"Creating '{self.name}' dataset.")
        export_timestamp = utc_timestamp()
        gdf, stats = self.transform(self.read(source_path), export_timestamp=export_timestamp)
        stats.log(self.name)
        path = output_path or self.path
        write_parquet(gdf, path)
        LOG.info(f"Saved to '{path}'.")
        manifest = ExportManifest.from_file(
            path,
            dataset=self.name,
            rows=stats.written,
            export_timestamp=export_timestamp,
            crs=CRS,
            sqft_per_sq_degree=self.sqft_per_sq_degree,
            area_min_sqft=self.area_min_sqft,
            area_max_sqft=self.area_max_sqft,
            stats=stats.dict,
            provenance=asdict(self.provenance),
            license_note=self.license_note,
        )
        manifest_path = self.manifest_path if output_path is None else str(Path(output_path).with_suffix(".manifest.json"))
        write_manifest(manifest, manifest_path)
        return manifest

    @property
    def dict(self) -> dict:
        """A dictionary representation of the dataset."""
        return dict(
            name=self.name,
            type=type(self).__name__,
            source_path=self.source_path,
            path=self.path,
            area_column=self.area_column,
            area_min_sqft=self.area_min_sqft,
            area_max_sqft=self.area_max_sqft,
            **asdict(self.provenance),
        )
