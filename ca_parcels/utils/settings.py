import os

SRID: int = 4326
CRS: str = f"EPSG:{SRID}"

# Square feet per square degree, planar approximation at 35°N.
SQFT_PER_SQ_DEGREE: float = 1.087e11

PARCEL_AREA_MIN_SQFT: float = 1_200
PARCEL_AREA_MAX_SQFT: float = 50_000_000
BUILDING_AREA_MIN_SQFT: float = 100
BUILDING_AREA_MAX_SQFT: float = 1_000_000

STATE: str = "California"
TIMESTAMP_FMT: str = r"%Y-%m-%dT%H:%M:%SZ"

DATA_DIR: str = os.environ.get("CA_PARCELS_DATA_DIR", "data/raw")
OUTPUT_DIR: str = os.environ.get("CA_PARCELS_OUTPUT_DIR", "data/release")

FILE_FMT: str = "{name}.parquet"
MANIFEST_FMT: str = "{name}.manifest.json"

LICENSE_PARCELS: str = "California statewide parcel data, public record. Redistributed as-is, no warranty."
LICENSE_BUILDINGS: str = "Microsoft Building Footprints, Open Data Commons Open Database License (ODbL)."
