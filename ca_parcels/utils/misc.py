import re
from datetime import datetime, timezone
from hashlib import sha256

import pandas as pd

from ca_parcels.utils.settings import TIMESTAMP_FMT


def snake_case(string: str) -> str:
    """Convert string to snake_case
    1, lowercase
    2, replace spaces with underscores
    3, remove special characters
    \\w=words, \\d=digits, \\s=spaces, [^ ]=not

    ```py
    snake_case('Kebab-case') == 'kebab_case'
    snake_case('Terrible01 dataset_name%') == 'terrible01_dataset_name'
    ```
    """
    return re.sub(r"[^\w\d_]", "", re.sub(r"[\s/-]", "_", string.lower()))


def is_snake_case(string: str) -> bool:
    return string == snake_case(string)


def utc_timestamp(now: datetime | None = None) -> str:
    """Current UTC time as an ISO-8601 string, second precision."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FMT)


def sha256sum(path: str, chunk_size: int = 2**20) -> str:
    hsh = sha256()
    with open(path, "rb") as fp:
        for chunk in iter(lambda: fp.read(chunk_size), b""):
            hsh.update(chunk)
    return hsh.hexdigest()


def integral_text(series: pd.Series) -> pd.Series:
    """Whole-number floats as text without a trailing ".0", any other series unchanged.

    Numeric id columns with nulls are read as float64, so `123456789` would otherwise become
    `"123456789.0"` when coerced to text.

    ```py
    integral_text(pd.Series([123456789.0, None])).tolist() == ["123456789", pd.NA]
    ```
    """
    if pd.api.types.is_float_dtype(series) and (series.isna() | (series % 1 == 0)).all():
        return series.astype("Int64").astype("string")
    return series
