"""California parcel boundaries.

Parcels come from the statewide parcel layer, one polygon per Assessor's Parcel Number (APN).
Geometries that are not valid polygons are dropped, never repaired, and parcels outside
1,200 to 50,000,000 square feet are dropped as slivers or whole-county artefacts.

Zoning and land use are published as empty columns. They are not in the parcel layer and the
exporter does not infer them.
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
    CRS,
    DATA_DIR,
    LICENSE_PARCELS,
    PARCEL_AREA_MAX_SQFT,
    PARCEL_AREA_MIN_SQFT,
    STATE,
)

COUNTY_INFERENCE: str = "county_from_source_table"


class ParcelsRaw(DataFrameModel):
    """Model for the raw statewide parcel layer.

    Attributes:
        apn: Assessor's Parcel Number, as published by the county.
        city: Situs city, blank for unincorporated parcels.
        county: County name.
        source_id: The layer's object id.
        geometry: Parcel polygons, any validity, in EPSG:4326.
    """

    apn: Series[pd.StringDtype] = Field(alias="APN", nullable=True, coerce=True)
    city: Series[pd.StringDtype] = Field(alias="CITY", nullable=True, coerce=True, required=False)
    county: Series[pd.StringDtype] = Field(alias="COUNTY", nullable=True, coerce=True, required=False)
    source_id: Series[pd.StringDtype] = Field(alias="OBJECTID", nullable=True, coerce=True, required=False)
    geometry: Geometry(crs=CRS) = Field(nullable=True)


class Parcels(DataFrameModel):
    """Model for the published parcels.

    Attributes:
        apn: Assessor's Parcel Number.
        geometry: Valid (Multi)Polygon in EPSG:4326.
        area_sqft: Planar area from the fixed 35°N conversion.
        city: Situs city.
        county: County name.
        state: Always "California".
        zoning_raw: Always null.
        land_use_raw: Always null.
        source_system, source_table, source_id, spatial_resolution, export_timestamp: Provenance.
        inferred_flag: Whether any field was derived rather than read from source.
        inference_method: How, only when inferred_flag is set.
        license_note: License of the source.
    """

    apn: Series[pd.StringDtype] = Field(str_length={"min_value": 1})
    geometry: Geometry(crs=CRS) = Field()
    area_sqft: Series[float] = Field(ge=PARCEL_AREA_MIN_SQFT, lt=PARCEL_AREA_MAX_SQFT)
    city: Series[pd.StringDtype] = Field(nullable=True)
    county: Series[pd.StringDtype] = Field(nullable=True)
    state: Series[pd.StringDtype] = Field(isin=[STATE])
    zoning_raw: Series[pd.StringDtype] = Field(nullable=True)
    land_use_raw: Series[pd.StringDtype] = Field(nullable=True)
    source_system: Series[pd.StringDtype] = Field()
    source_table: Series[pd.StringDtype] = Field()
    source_id: Series[pd.StringDtype] = Field()
    spatial_resolution: Series[pd.StringDtype] = Field(isin=["parcel"])
    export_timestamp: Series[pd.StringDtype] = Field()
    inferred_flag: Series[bool] = Field()
    inference_method: Series[pd.StringDtype] = Field(nullable=True)
    license_note: Series[pd.StringDtype] = Field()

    class Config:
        coerce = True
        strict = True
        ordered = True

    @check("geometry")
    def valid_polygon(cls, geometry: Series) -> Series:
        return pd.Series(valid_polygons(gpd.GeoSeries(geometry)), index=geometry.index)

    @check("zoning_raw", "land_use_raw")
    def never_inferred(cls, series: Series) -> Series:
        return series.isna()

    @dataframe_check
    def inference_method_only_if_inferred(cls, df: pd.DataFrame) -> Series:
        return df["inference_method"].isna() | df["inferred_flag"]


@dataclass
class ParcelExport(ExportDataset):
    """Parcel dataset.

    Attributes:
        default_county: County to fill where a source row has none. Only for source tables
            known to cover a single county. Filled rows are flagged as inferred.
    """

    default_county: str | None = None

    def _has_id(self, df: gpd.GeoDataFrame) -> np.ndarray:
        return df["apn"].str.strip().fillna("").ne("").to_numpy(dtype=bool)

    def _attributes(self, df: gpd.GeoDataFrame, start_id: int) -> gpd.GeoDataFrame:
        county = df["county"].str.strip().replace("", pd.NA)
        inferred = county.isna().to_numpy(dtype=bool) if self.default_county else np.zeros(len(df), dtype=bool)
        if self.default_county:
            county = county.fillna(self.default_county)
        return df.assign(
            apn=df["apn"].str.strip(),
            city=df["city"].str.strip().replace("", pd.NA),
            county=county,
            state=STATE,
            zoning_raw=None,
            land_use_raw=None,
            inferred_flag=inferred,
            inference_method=np.where(inferred, COUNTY_INFERENCE, None),
        )


parcels = ParcelExport(
    name="ca_parcels",
    source_path=f"{DATA_DIR}/ca_statewide_parcels.gdb",
    layer="Parcels",
    provenance=Provenance(
        source_system="California statewide parcel layer",
        source_table="Parcels",
        spatial_resolution="parcel",
    ),
    license_note=LICENSE_PARCELS,
    raw_model=ParcelsRaw,
    model=Parcels,
    area_column="area_sqft",
    area_min_sqft=PARCEL_AREA_MIN_SQFT,
    area_max_sqft=PARCEL_AREA_MAX_SQFT,
)
"""Definition for the statewide California parcels export."""
