"""Release manifest written next to each exported file.

Consumers download the parquet from the release host and check it against `sha256`.
"""
from pathlib import Path

from pydantic import BaseModel

from ca_parcels.utils.log import LOG
from ca_parcels.utils.misc import sha256sum


class ExportManifest(BaseModel):
    dataset: str
    file: str
    rows: int
    size_bytes: int
    sha256: str
    export_timestamp: str
    crs: str
    sqft_per_sq_degree: float
    area_min_sqft: float
    area_max_sqft: float
    stats: dict[str, int]
    provenance: dict[str, str]
    license_note: str

    @classmethod
    def from_file(cls, path: str, **kwargs) -> "ExportManifest":
        """Build a manifest for an already written file, measuring size and checksum."""
        path = Path(path)
        return cls(file=path.name, size_bytes=path.stat().st_size, sha256=sha256sum(path), **kwargs)

    def verify(self, path: str) -> bool:
        """Check a downloaded file matches this manifest."""
        path = Path(path)
        return path.stat().st_size == self.size_bytes and sha256sum(path) == self.sha256


def write_manifest(manifest: ExportManifest, path: str):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(manifest.model_dump_json(indent=4), encoding="utf-8")
    LOG.info(f"Wrote manifest: {path}")


def read_manifest(path: str) -> ExportManifest:
    return ExportManifest.model_validate_json(Path(path).read_text(encoding="utf-8"))
