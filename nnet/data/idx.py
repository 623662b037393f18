"""Reader for the IDX image/label files used by MNIST.

Both files start with big-endian int32 header fields: the images file holds
``magic, count, rows, cols`` (16 bytes) and the labels file ``magic, count``
(8 bytes), followed by one unsigned byte per pixel or label.
"""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from ..core.types import DTYPE, Array
from ..errors import DataFormatError
from .dataset import Dataset

IMAGES_MAGIC = 2051
LABELS_MAGIC = 2049
IMAGES_HEADER_SIZE_BYTES = 16
LABELS_HEADER_SIZE_BYTES = 8


@dataclass(frozen=True, eq=False)
class ImageData:
    magic_num: int
    num_images: int
    rows: int
    cols: int
    images: Array

    @property
    def pixels(self) -> int:
        return self.rows * self.cols


@dataclass(frozen=True, eq=False)
class LabelData:
    magic_num: int
    num_labels: int
    labels: Array


def extract_header_line(buf: bytes) -> int:
    """Decode one big-endian int32 header field."""

    if len(buf) < 4:
        raise DataFormatError("header field truncated")
    return int(np.frombuffer(buf[:4], dtype=">i4")[0])


def _read_bytes(path: str | Path) -> bytes:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"no such data file: {path}")
    if path.suffix == ".gz":
        with gzip.open(path, "rb") as handle:
            return handle.read()
    return path.read_bytes()


def parse_images(raw: bytes) -> ImageData:
    if len(raw) < IMAGES_HEADER_SIZE_BYTES:
        raise DataFormatError("images file shorter than its header")
    magic, count, rows, cols = (
        extract_header_line(raw[offset : offset + 4]) for offset in range(0, 16, 4)
    )
    if magic != IMAGES_MAGIC:
        raise DataFormatError(f"bad images magic number {magic}, expected {IMAGES_MAGIC}")
    pixels = rows * cols
    expected = IMAGES_HEADER_SIZE_BYTES + count * pixels
    if count < 0 or pixels <= 0 or len(raw) < expected:
        raise DataFormatError(
            f"images payload truncated: {len(raw)} bytes for {count} x {rows} x {cols}"
        )
    payload = np.frombuffer(raw, dtype=np.uint8, count=count * pixels, offset=16)
    # Normalise greyscale so the sigmoid is not saturated by raw byte values.
    images = payload.reshape(count, pixels).astype(DTYPE) / 255.0
    return ImageData(magic, count, rows, cols, images)


def parse_labels(raw: bytes) -> LabelData:
    if len(raw) < LABELS_HEADER_SIZE_BYTES:
        raise DataFormatError("labels file shorter than its header")
    magic = extract_header_line(raw[0:4])
    count = extract_header_line(raw[4:8])
    if magic != LABELS_MAGIC:
        raise DataFormatError(f"bad labels magic number {magic}, expected {LABELS_MAGIC}")
    if count < 0 or len(raw) < LABELS_HEADER_SIZE_BYTES + count:
        raise DataFormatError(f"labels payload truncated: {len(raw)} bytes for {count}")
    labels = np.frombuffer(raw, dtype=np.uint8, count=count, offset=8).astype(np.int64)
    return LabelData(magic, count, labels)


def read_images(path: str | Path) -> ImageData:
    return parse_images(_read_bytes(path))


def read_labels(path: str | Path) -> LabelData:
    return parse_labels(_read_bytes(path))


def format_image_stats(data: ImageData) -> str:
    return "\n".join(
        [
            "*** Images: ***",
            f"Magic Num: {data.magic_num}",
            f"Images   : {data.num_images}",
            f"Rows     : {data.rows}",
            f"Columns  : {data.cols}",
        ]
    )


def format_label_stats(data: LabelData) -> str:
    return "\n".join(
        [
            "*** Labels: ***",
            f"Magic Num: {data.magic_num}",
            f"Labels  : {data.num_labels}",
        ]
    )


def read_all_data(
    images_file: str | Path,
    labels_file: str | Path,
    *,
    verbose: bool = False,
) -> Dataset:
    """Load an images/labels file pair into a :class:`Dataset`."""

    image_data = read_images(images_file)
    if verbose:
        print(f"Pixels per image: {image_data.pixels}")
        print(format_image_stats(image_data) + "\n")
    label_data = read_labels(labels_file)
    if verbose:
        print(format_label_stats(label_data) + "\n")

    if image_data.num_images != label_data.num_labels:
        raise DataFormatError(
            f"{image_data.num_images} images but {label_data.num_labels} labels"
        )
    return Dataset(
        image_data.images,
        label_data.labels,
        provenance={
            "images_file": str(images_file),
            "labels_file": str(labels_file),
            "rows": image_data.rows,
            "cols": image_data.cols,
        },
    )


def write_idx(images: Array, labels: Array, images_path: str | Path, labels_path: str | Path) -> None:
    """Write ``uint8`` images ``(n, rows, cols)`` and labels as an IDX pair."""

    images = np.asarray(images, dtype=np.uint8)
    labels = np.asarray(labels, dtype=np.uint8)
    if images.ndim != 3:
        raise DataFormatError(f"images must be (n, rows, cols), got {images.shape}")
    header = np.array([IMAGES_MAGIC, *images.shape], dtype=">i4").tobytes()
    Path(images_path).write_bytes(header + images.tobytes())
    header = np.array([LABELS_MAGIC, labels.shape[0]], dtype=">i4").tobytes()
    Path(labels_path).write_bytes(header + labels.tobytes())


__all__ = [
    "ImageData",
    "LabelData",
    "extract_header_line",
    "parse_images",
    "parse_labels",
    "read_images",
    "read_labels",
    "read_all_data",
    "format_image_stats",
    "format_label_stats",
    "write_idx",
]
