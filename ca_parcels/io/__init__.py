from .file import UnknownFileExtension, ensure_crs, read_file, write_parquet
from .manifest import ExportManifest, read_manifest, write_manifest
