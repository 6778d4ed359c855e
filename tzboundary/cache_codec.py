"""
binary serialisation of boundary collections

All values are little endian. Layout of a cache file:

    u32         format version
    u32 + utf8  dataset version
    u32 + utf8  producer version
    u32         number of records
    per record:
        u32 + utf8  zone name
        4 x f8      bounding box: min lat, max lat, min lng, max lng
        u32         number of rings (the boundary followed by its holes)
        per ring:
            u32             number of points N
            2N x f8         coordinate pairs: lng0, lat0, lng1, lat1, ...

Reading requires no parsing: every value is sliced directly out of the buffer.
"""
import logging
import os
import struct
import tempfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np

from tzboundary.boundaries import (
    BoundaryCollection,
    BoundaryRecord,
    BoundingBox,
    CacheMetadata,
    Polygon,
)
from tzboundary.configs import (
    DTYPE_FORMAT_F_NUMPY,
    DTYPE_FORMAT_I,
    MIN_RING_POINTS,
    NR_BBOX_VALUES,
    NR_BYTES_D,
    NR_BYTES_I,
    THRES_DTYPE_I,
    TMP_CACHE_SUFFIX,
)
from tzboundary.errors import CacheCorruptError

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]


def flatten_polygon_coords(polygon: np.ndarray) -> np.ndarray:
    """Convert polygon coordinates from shape (2, N) to a flattened [x0, y0, x1, y1, ...] array.

    Args:
        polygon: Array of polygon coordinates with shape (2, N)
                where the first row contains x coordinates and the second row contains y coordinates

    Returns:
        Flattened 1D array of coordinates in the format [x0, y0, x1, y1, ...]
    """
    return polygon.ravel(order="F")


def reshape_to_polygon_coords(coords: np.ndarray) -> np.ndarray:
    """Reshape flattened coordinates to the format (2, N).

    Args:
        coords: Flattened 1D array of coordinates in the format [x0, y0, x1, y1, ...]

    Returns:
        Array of polygon coordinates with shape (2, N)
        where the first row contains x coordinates and the second row contains y coordinates
    """
    return coords.reshape(2, -1, order="F")


def _write_uint(output: BinaryIO, value: int) -> None:
    if not 0 <= value < THRES_DTYPE_I:
        raise ValueError(f"{value} does not fit into an unsigned 4 byte integer")
    output.write(struct.pack(DTYPE_FORMAT_I, value))


def _write_str(output: BinaryIO, value: str) -> None:
    encoded = value.encode("utf-8")
    _write_uint(output, len(encoded))
    output.write(encoded)


def _write_floats(output: BinaryIO, values: np.ndarray) -> None:
    output.write(np.asarray(values, dtype=DTYPE_FORMAT_F_NUMPY).tobytes())


def _write_metadata(output: BinaryIO, metadata: CacheMetadata) -> None:
    _write_uint(output, metadata.format_version)
    _write_str(output, metadata.dataset_version)
    _write_str(output, metadata.producer_version)


def _write_record(output: BinaryIO, record: BoundaryRecord) -> None:
    _write_str(output, record.zone_name)
    bbox = record.bbox
    _write_floats(output, [bbox.ymin, bbox.ymax, bbox.xmin, bbox.xmax])
    rings = record.polygon.rings
    _write_uint(output, len(rings))
    for ring in rings:
        _write_uint(output, ring.shape[1])
        _write_floats(output, flatten_polygon_coords(ring))


def encode(collection: BoundaryCollection, metadata: CacheMetadata) -> bytes:
    """serialises the boundary collection together with the metadata identifying its origin"""
    output = BytesIO()
    _write_metadata(output, metadata)
    _write_uint(output, len(collection))
    for record in collection:
        _write_record(output, record)
    return output.getvalue()


class _BufferReader:
    """sequential reader slicing values out of a binary buffer

    :raises CacheCorruptError: when reading beyond the end of the buffer
    """

    def __init__(self, buf: Buffer):
        self.buf = buf
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.buf) - self.offset

    def _claim(self, nr_bytes: int) -> int:
        if nr_bytes > self.remaining:
            raise CacheCorruptError(
                f"unexpected end of data: {nr_bytes} bytes required at offset {self.offset}, "
                f"only {self.remaining} left"
            )
        start = self.offset
        self.offset += nr_bytes
        return start

    def read_uint(self) -> int:
        start = self._claim(NR_BYTES_I)
        return struct.unpack_from(DTYPE_FORMAT_I, self.buf, start)[0]

    def read_str(self) -> str:
        length = self.read_uint()
        start = self._claim(length)
        try:
            return bytes(self.buf[start : start + length]).decode("utf-8")
        except UnicodeDecodeError as err:
            raise CacheCorruptError(f"invalid string at offset {start}") from err

    def read_floats(self, count: int) -> np.ndarray:
        start = self._claim(count * NR_BYTES_D)
        return np.frombuffer(
            self.buf, dtype=DTYPE_FORMAT_F_NUMPY, count=count, offset=start
        )


def _read_metadata(reader: _BufferReader) -> CacheMetadata:
    format_version = reader.read_uint()
    dataset_version = reader.read_str()
    producer_version = reader.read_str()
    return CacheMetadata(format_version, dataset_version, producer_version)


def _read_record(reader: _BufferReader, record_nr: int) -> BoundaryRecord:
    zone_name = reader.read_str()
    ymin, ymax, xmin, xmax = reader.read_floats(NR_BBOX_VALUES).tolist()
    bbox = BoundingBox(xmin, xmax, ymin, ymax)
    nr_rings = reader.read_uint()
    if nr_rings == 0:
        raise CacheCorruptError(f"record {record_nr} ({zone_name}) has no rings")
    rings = []
    for _ in range(nr_rings):
        nr_points = reader.read_uint()
        if nr_points < MIN_RING_POINTS:
            raise CacheCorruptError(
                f"record {record_nr} ({zone_name}) has a ring with only {nr_points} points"
            )
        coords = reader.read_floats(2 * nr_points)
        rings.append(reshape_to_polygon_coords(coords))
    polygon = Polygon(rings[0], rings[1:])
    if BoundingBox.from_ring(polygon.exterior) != bbox:
        raise CacheCorruptError(
            f"the stored bounding box of record {record_nr} ({zone_name}) does not match its polygon"
        )
    return BoundaryRecord(zone_name, polygon, bbox)


def peek_metadata(buf: Buffer) -> CacheMetadata:
    """decodes only the header of a cache"""
    return _read_metadata(_BufferReader(buf))


def decode(buf: Buffer) -> Tuple[BoundaryCollection, CacheMetadata]:
    """inverse of ``encode()``

    NOTE: whether the metadata matches the expectations is up to the caller

    :raises CacheCorruptError: if the data is truncated or malformed
    """
    reader = _BufferReader(buf)
    metadata = _read_metadata(reader)
    nr_records = reader.read_uint()
    records = [_read_record(reader, record_nr) for record_nr in range(nr_records)]
    if reader.remaining > 0:
        raise CacheCorruptError(
            f"{reader.remaining} unexpected trailing bytes after {nr_records} records"
        )
    return BoundaryCollection(records), metadata


def read_cache(path: Path) -> Tuple[BoundaryCollection, CacheMetadata]:
    """
    :raises OSError: if the file cannot be read (e.g. does not exist)
    :raises CacheCorruptError: if the file content is malformed
    """
    logger.debug("reading boundary cache %s", path)
    return decode(Path(path).read_bytes())


def write_cache(
    path: Path, collection: BoundaryCollection, metadata: CacheMetadata
) -> int:
    """writes the cache file atomically

    the data is written to a temporary file in the target directory first which is then moved into place.
    a reader never observes a partially written file and among concurrent writers the last one wins.

    :return: the size of the written file in bytes
    """
    path = Path(path)
    buf = encode(collection, metadata)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=path.name + ".", suffix=TMP_CACHE_SUFFIX
    )
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(buf)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    size_in_mb = len(buf) / (1024**2)
    logger.info("wrote %d boundary polygons to %s (%.2f MB)", len(collection), path, size_in_mb)
    return len(buf)
