"""ca_parcels datasets.
Datasets are collected into `catalogue: list[ExportDataset]` at the bottom.

Example use, printing where each dataset is written.
```py
from ca_parcels.datasets import catalogue
for dataset in catalogue:
    print(dataset.name, dataset.path)
```
"""
from ca_parcels.etl import ExportDataset

from .buildings import buildings
from .parcels import parcels

catalogue: list[ExportDataset] = [
    parcels,
    buildings,
]


def find_dataset(name: str) -> ExportDataset:
    """Find a dataset in the catalogue by name, either `ca_parcels` or the short `parcels`."""
    for dataset in catalogue:
        if name in (dataset.name, dataset.name.removeprefix("ca_")):
            return dataset
    raise KeyError(f"Unknown dataset '{name}', expected one of {[d.name for d in catalogue]}.")
