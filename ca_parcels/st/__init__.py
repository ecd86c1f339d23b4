from .geometry import (
    area_sqft,
    from_wkb,
    is_valid_polygon,
    to_wkb,
    valid_polygons,
)
