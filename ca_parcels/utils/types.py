from typing import Union

from geopandas import GeoDataFrame
from pandas import DataFrame as PandasDataFrame

DataFrame = Union[PandasDataFrame, GeoDataFrame]
