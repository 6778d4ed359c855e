"""
Demonstration of the different ways to query the timezone of a point
"""

import json
import tempfile
from pathlib import Path

from tzboundary import TimezoneFinder, configure, timezone_at, timezones_at

# a tiny dataset in the GeoJSON format of the timezone-boundary-builder releases
DATASET = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"tzid": "Europe/Berlin"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [
                    [[13.0, 52.3], [13.8, 52.3], [13.8, 52.7], [13.0, 52.7], [13.0, 52.3]]
                ],
            },
        },
        {
            "type": "Feature",
            "properties": {"tzid": "Asia/Karachi"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[74.0, 33.0], [77.0, 33.0], [77.0, 35.0], [74.0, 35.0]]],
            },
        },
        {
            "type": "Feature",
            "properties": {"tzid": "Asia/Kolkata"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[76.0, 33.0], [78.0, 33.0], [78.0, 35.0], [76.0, 35.0]]],
            },
        },
    ],
}

test_lng, test_lat = 13.358, 52.5061  # coordinates of Berlin

with tempfile.TemporaryDirectory() as tmp_dir:
    dataset_path = Path(tmp_dir) / "combined.json"
    dataset_path.write_text(json.dumps(DATASET))
    cache_path = Path(tmp_dir) / "cache" / "boundaries.bin"

    # the first instance parses the dataset and writes the binary cache
    tf = TimezoneFinder(
        dataset=dataset_path, cache_path=cache_path, dataset_version="demo"
    )
    tz_instance = tf.timezone_at(lng=test_lng, lat=test_lat)

    # subsequent instances only read the cache
    with TimezoneFinder(cache_path=cache_path, dataset_version="demo") as tf:
        tz_context = tf.timezone_at(lng=test_lng, lat=test_lat)
        # disputed areas are claimed by more than one zone
        disputed = tf.timezones_at(lng=76.5, lat=34.0)

    # the module level functions share a single instance
    configure(dataset=dataset_path, cache_path=cache_path, dataset_version="demo")
    tz_global = timezone_at(lng=test_lng, lat=test_lat)
    disputed_global = timezones_at(lng=76.5, lat=34.0)

print(f"Timezone at ({test_lng}, {test_lat}):")
print("instance method:", tz_instance)
print("context manager:", tz_context)
print("global function:", tz_global)
print("disputed area (76.5, 34.0):", disputed, disputed_global)
