import argparse
import sys
from dataclasses import replace

from ca_parcels import export_datasets
from ca_parcels.datasets import catalogue, find_dataset
from ca_parcels.io import UnknownFileExtension
from ca_parcels.utils.log import LOG, DataError, set_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ca-parcels",
        description="Export California parcels and building footprints to GeoParquet.",
    )
    parser.add_argument("datasets", nargs="*", help=f"Datasets to export, default all of {[d.name for d in catalogue]}.")
    parser.add_argument("--source", help="Source file, overrides the dataset default. Needs exactly one dataset.")
    parser.add_argument("--output", help="Output parquet path, overrides the dataset default. Needs exactly one dataset.")
    parser.add_argument("--output-dir", help="Directory to write every dataset into.")
    parser.add_argument("--default-county", help="County for parcels with none, marks them inferred.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_log_level(LOG, args.log_level)
    if (args.source or args.output) and len(args.datasets) != 1:
        LOG.error("--source and --output need exactly one dataset.")
        return 2
    try:
        if not (args.source or args.output or args.output_dir or args.default_county):
            export_datasets(args.datasets)
            return 0
        datasets = [find_dataset(name) for name in args.datasets] if args.datasets else catalogue
        for dataset in datasets:
            if args.output_dir:
                dataset = replace(dataset, output_dir=args.output_dir)
            if args.default_county and hasattr(dataset, "default_county"):
                dataset = replace(dataset, default_county=args.default_county)
            dataset.refresh(source_path=args.source, output_path=args.output)
    except (DataError, KeyError, UnknownFileExtension) as err:
        LOG.error(f"Export failed: {err}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
