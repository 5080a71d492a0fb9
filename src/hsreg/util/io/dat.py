"""
Reader for raw ``.dat`` image series.

Layout (little endian):

    int32            header_size (3 or 4)
    int32 * size     dimx, dimy, [dimz,] no_dyn
    float32 * N      samples, column-major (dimx varies fastest)

with ``N = dimx * dimy * dimz * no_dyn`` (``dimz = 1`` for a 3-entry header).
"""

from pathlib import Path
from typing import Tuple, Union

import numpy as np

from hsreg.util.io._base import SeriesReader

_HEADER_DTYPE = np.dtype('<i4')
_DATA_DTYPE = np.dtype('<f4')


def load_dat(file_name: Union[str, Path]) -> Tuple[np.ndarray, int, int, int, int]:
    """
    Load a raw image series.

    Returns:
        (image, dimx, dimy, dimz, no_dyn) with ``image`` of shape
        (dimx, dimy, dimz, no_dyn).
    """
    path = Path(file_name)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise IOError(f"Could not open data file: {path}. Error: {e}") from e

    if len(raw) < _HEADER_DTYPE.itemsize:
        raise ValueError(f"{path}: file is too short to hold a header")
    header_size = int(np.frombuffer(raw, dtype=_HEADER_DTYPE, count=1)[0])
    if header_size not in (3, 4):
        raise ValueError(f"{path}: unsupported header size {header_size}, expected 3 or 4")

    offset = _HEADER_DTYPE.itemsize * (1 + header_size)
    if len(raw) < offset:
        raise ValueError(f"{path}: truncated header")
    header = np.frombuffer(raw, dtype=_HEADER_DTYPE, count=header_size,
                           offset=_HEADER_DTYPE.itemsize).astype(int)

    dimx, dimy = int(header[0]), int(header[1])
    if header_size == 3:
        dimz, no_dyn = 1, int(header[2])
    else:
        dimz, no_dyn = int(header[2]), int(header[3])
    if min(dimx, dimy, dimz, no_dyn) < 1:
        raise ValueError(f"{path}: invalid dimensions {(dimx, dimy, dimz, no_dyn)}")

    payload = len(raw) - offset
    expected = dimx * dimy * dimz * no_dyn
    if payload != expected * _DATA_DTYPE.itemsize:
        raise ValueError(
            f"{path}: expected {expected} float samples, found {payload / _DATA_DTYPE.itemsize:g}")
    data = np.frombuffer(raw, dtype=_DATA_DTYPE, offset=offset)
    image = data.reshape((dimx, dimy, dimz, no_dyn), order='F').astype(np.float64)
    return image, dimx, dimy, dimz, no_dyn


def save_dat(file_name: Union[str, Path], image: np.ndarray) -> None:
    """Write a (dimx, dimy, [dimz,] no_dyn) array in the ``.dat`` layout."""
    image = np.asarray(image)
    if image.ndim == 3:
        header = [image.shape[0], image.shape[1], image.shape[2]]
    elif image.ndim == 4:
        header = list(image.shape)
    else:
        raise ValueError(f"Expected a 3D or 4D series, got {image.ndim}D")
    with open(file_name, 'wb') as f:
        f.write(np.asarray([len(header)], dtype=_HEADER_DTYPE).tobytes())
        f.write(np.asarray(header, dtype=_HEADER_DTYPE).tobytes())
        f.write(np.asarray(image, dtype=_DATA_DTYPE).tobytes(order='F'))


class DATFileReader(SeriesReader):
    """
    Reads a ``.dat`` series into memory. Frames are the dynamics of the
    series; ``get_image`` returns one slice in display orientation (rows
    top to bottom).
    """

    def __init__(self, input_file: Union[str, Path], **kwargs):
        super().__init__()
        self.file_path = str(input_file)
        self._data, self.dimx, self.dimy, self.dimz, self.frame_count = load_dat(self.file_path)
        self.dtype = self._data.dtype

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        return self._data.shape

    def read_frames(self, frame_indices: list[int]) -> np.ndarray:
        """Returns (len(frame_indices), dimx, dimy, dimz)."""
        idx = list(frame_indices)
        for i in idx:
            if not 0 <= i < self.frame_count:
                raise IndexError(f"Dynamic {i} out of range [0, {self.frame_count})")
        return np.moveaxis(self._data[..., idx], -1, 0)

    def get_image(self, dynamic: int, slice_index: int = 0) -> np.ndarray:
        """(dimy, dimx) image of one slice, transposed and flipped upside down."""
        if not 0 <= slice_index < self.dimz:
            raise IndexError(f"Slice {slice_index} out of range [0, {self.dimz})")
        frame = self.read_frames([dynamic])[0, :, :, slice_index]
        return np.flipud(frame.T).copy()

    def close(self):
        self._data = None
