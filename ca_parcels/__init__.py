"""Provenance-preserving exporter for California parcels and building footprints."""

from ca_parcels.datasets import catalogue, find_dataset
from ca_parcels.io import ExportManifest
from ca_parcels.utils.log import LOG


def export_datasets(names: list[str] | None = None) -> list[ExportManifest]:
    """Export every dataset in the catalogue, or only the named ones."""
    datasets = catalogue if not names else [find_dataset(name) for name in names]
    LOG.info(f"Exporting {len(datasets)} datasets...")
    manifests = [dataset.refresh() for dataset in datasets]
    LOG.info("All datasets exported.")
    return manifests
