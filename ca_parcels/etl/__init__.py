"""Code for extracting, transforming and exporting datasets."""
from .etl import (
    ExportDataset,
    ExportStats,
    Provenance,
)
