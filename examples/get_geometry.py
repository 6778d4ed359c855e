"""
Retrieving the boundary polygons of a timezone
"""

import tempfile
from pathlib import Path

from tzboundary import TimezoneFinder

DATASET = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"tzid": "Africa/Johannesburg"},
            "geometry": {
                "type": "Polygon",
                # the boundary followed by a hole (Lesotho)
                "coordinates": [
                    [[27.0, -31.0], [30.0, -31.0], [30.0, -28.0], [27.0, -28.0], [27.0, -31.0]],
                    [[27.5, -30.0], [29.0, -30.0], [29.0, -29.0], [27.5, -29.0], [27.5, -30.0]],
                ],
            },
        },
    ],
}

with tempfile.TemporaryDirectory() as tmp_dir:
    tf = TimezoneFinder(
        dataset=DATASET,
        cache_path=Path(tmp_dir) / "boundaries.bin",
        dataset_version="demo",
        preload=True,
    )
    geometry = tf.get_geometry(tz_name="Africa/Johannesburg", coords_as_pairs=False)
    geometry_pairs = tf.get_geometry(tz_name="Africa/Johannesburg", coords_as_pairs=True)

for polygon_nr, polygon in enumerate(geometry):
    boundary, *holes = polygon
    x_coords, y_coords = boundary
    print(f"polygon {polygon_nr}: {len(x_coords)} points, {len(holes)} holes")
print(geometry_pairs)
