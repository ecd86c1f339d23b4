from setuptools import find_packages, setup

__title__ = "ca-parcels"
__description__ = "Provenance-preserving GeoParquet exports of California parcels and building footprints"
__version__ = "0.1"

REQUIRED_PACKAGES = [
    "geopandas>=1.0",
    "numpy",
    "pandas>=2.0",
    "pandera[geopandas]",
    "pyarrow",
    "pydantic>=2",
    "pyogrio",
    "rich",
    "shapely>=2.0",
]

TEST_PACKAGES = [
    "ruff",
    "pytest",
]

DEV_PACKAGES = [
    *TEST_PACKAGES,
    "duckdb",
    "ipykernel",
    "ipython",
]


setup(
    name=__title__,
    description=__description__,
    version=__version__,
    python_requires=">=3.10",
    packages=find_packages(exclude=["*.tests", "*.tests.*", "tests.*", "tests"]),
    install_requires=REQUIRED_PACKAGES,
    extras_require={"test": TEST_PACKAGES, "dev": DEV_PACKAGES},
    entry_points={
        "console_scripts": [
            "ca-parcels=ca_parcels.__main__:main",
        ]
    },
)
