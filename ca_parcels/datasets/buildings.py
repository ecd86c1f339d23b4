"""California building footprints.

Footprints come from Microsoft's ML building footprint release for California. Each surviving
footprint is numbered in source order. Footprints are not linked to parcels and heights are not
estimated, so `parcel_apn`, `height_ft` and `stories` are always null.
"""
from dataclasses import dataclass

import geopandas as gpd
import numpy as np
import pandas as pd
from pandera import DataFrameModel, Field, check, dataframe_check
from pandera.engines.geopandas_engine import Geometry
from pandera.typing import Series

from ca_parcels.etl import ExportDataset, Provenance
from ca_parcels.st.geometry import valid_polygons
from ca_parcels.utils.settings import (
    BUILDING_AREA_MAX_SQFT,
    BUILDING_AREA_MIN_SQFT,
    CRS,
    DATA_DIR,
    LICENSE_BUILDINGS,
)

SOURCE_LABEL: str = "Microsoft Building Footprints"


class BuildingsRaw(DataFrameModel):
    """Model for a raw Microsoft building footprint release file.

    Attributes:
        source_id: Feature id in the release file, where present.
        confidence: Model confidence in [0, 1], -1 where the release has none. Values outside [0, 1] are published as null.
        release: Release version number.
        capture_dates_range: Imagery capture dates, free text such as "1/1/2019-12/31/2020".
        geometry: Footprint polygons, any validity, in EPSG:4326.
    """

    source_id: Series[pd.StringDtype] = Field(alias="id", nullable=True, coerce=True, required=False)
    confidence: Series[float] = Field(nullable=True, coerce=True, required=False)
    release: Series[float] = Field(nullable=True, coerce=True, required=False)
    capture_dates_range: Series[pd.StringDtype] = Field(nullable=True, coerce=True, required=False)
    geometry: Geometry(crs=CRS) = Field(nullable=True)


class Buildings(DataFrameModel):
    """Model for the published building footprints.

    Attributes:
        building_id: Sequential id from 1 over the published rows.
        parcel_apn: Always null, footprints are never linked to parcels.
        geometry: Valid (Multi)Polygon in EPSG:4326.
        footprint_area_sqft: Planar area from the fixed 35°N conversion.
        height_ft: Always null.
        stories: Always null.
        source: Always "Microsoft Building Footprints".
        source_system, source_table, source_id, spatial_resolution, export_timestamp: Provenance.
        confidence: Model confidence, null where the release has none.
        release: Release version number.
        capture_dates_range: Imagery capture dates text.
        inferred_flag: Always false.
        inference_method: Always null.
        license_note: License of the source.
    """

    building_id: Series[np.int64] = Field(ge=1, unique=True)
    parcel_apn: Series[pd.StringDtype] = Field(nullable=True)
    geometry: Geometry(crs=CRS) = Field()
    footprint_area_sqft: Series[float] = Field(ge=BUILDING_AREA_MIN_SQFT, lt=BUILDING_AREA_MAX_SQFT)
    height_ft: Series[float] = Field(nullable=True)
    stories: Series[pd.Int64Dtype] = Field(nullable=True)
    source: Series[pd.StringDtype] = Field(isin=[SOURCE_LABEL])
    source_system: Series[pd.StringDtype] = Field()
    source_table: Series[pd.StringDtype] = Field()
    source_id: Series[pd.StringDtype] = Field()
    spatial_resolution: Series[pd.StringDtype] = Field(isin=["building"])
    export_timestamp: Series[pd.StringDtype] = Field()
    confidence: Series[float] = Field(nullable=True, ge=0, le=1)
    release: Series[np.int64] = Field(ge=1)
    capture_dates_range: Series[pd.StringDtype] = Field(nullable=True)
    inferred_flag: Series[bool] = Field(isin=[False])
    inference_method: Series[pd.StringDtype] = Field(nullable=True)
    license_note: Series[pd.StringDtype] = Field()

    class Config:
        coerce = True
        strict = True
        ordered = True

    @check("geometry")
    def valid_polygon(cls, geometry: Series) -> Series:
        return pd.Series(valid_polygons(gpd.GeoSeries(geometry)), index=geometry.index)

    @check("parcel_apn", "height_ft", "stories")
    def never_linked_or_inferred(cls, series: Series) -> Series:
        return series.isna()

    @dataframe_check
    def inference_method_only_if_inferred(cls, df: pd.DataFrame) -> Series:
        return df["inference_method"].isna() | df["inferred_flag"]


@dataclass
class BuildingExport(ExportDataset):
    """Building footprint dataset.

    Attributes:
        default_release: Release number for features without a usable one, missing or below 1.
    """

    default_release: int = 2

    def _attributes(self, df: gpd.GeoDataFrame, start_id: int) -> gpd.GeoDataFrame:
        # -1 is the release's "no value", anything outside [0, 1] is published as null too.
        confidence = df["confidence"].where(df["confidence"].between(0, 1))
        release = df["release"].where(df["release"] >= 1).fillna(self.default_release)
        return df.assign(
            building_id=np.arange(start_id, start_id + len(df), dtype=np.int64),
            parcel_apn=None,
            height_ft=np.nan,
            stories=pd.NA,
            source=SOURCE_LABEL,
            confidence=confidence,
            release=release.astype(np.int64),
            capture_dates_range=df["capture_dates_range"].str.strip().replace("", pd.NA),
            inferred_flag=False,
            inference_method=None,
        )


buildings = BuildingExport(
    name="ca_buildings",
    source_path=f"{DATA_DIR}/California.geojson",
    provenance=Provenance(
        source_system="Microsoft Building Footprints",
        source_table="California.geojson",
        spatial_resolution="building",
    ),
    license_note=LICENSE_BUILDINGS,
    raw_model=BuildingsRaw,
    model=Buildings,
    area_column="footprint_area_sqft",
    area_min_sqft=BUILDING_AREA_MIN_SQFT,
    area_max_sqft=BUILDING_AREA_MAX_SQFT,
)
"""Definition for the California building footprints export, from the US footprints release."""
