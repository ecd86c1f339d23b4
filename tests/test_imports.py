import importlib
from glob import glob


def test_imports():
    files = glob("ca_parcels/**/*.py", recursive=True)
    assert files, "Run from the repository root."
    for file in files:
        module = file[:-3].replace("/__init__", "").replace("/", ".")
        importlib.import_module(module)
