from hsreg.util.io._base import ResultWriter
import h5py
import numpy as np
from typing import Dict, Optional


class HDF5ResultWriter(ResultWriter):
    """
    Writes registration results to an HDF5 file: one dataset per grid,
    attributes on the file root.
    """

    def __init__(self, file_path: str, compression: Optional[str] = "gzip", **kwargs):
        super().__init__()
        self.file_path = file_path
        self.compression = compression
        self._h5file = None

    def _ensure_open(self):
        if self._h5file is None:
            try:
                self._h5file = h5py.File(self.file_path, 'w')
            except Exception as e:
                raise IOError(f"Could not create HDF5 file: {self.file_path}. Error: {e}")
            self.initialized = True

    def write_result(self, grids: Dict[str, np.ndarray], attrs: Optional[Dict[str, object]] = None):
        self._ensure_open()
        for name, grid in grids.items():
            if name in self._h5file:
                del self._h5file[name]
            self._h5file.create_dataset(name, data=np.asarray(grid), compression=self.compression)
        for key, value in (attrs or {}).items():
            self._h5file.attrs[key] = value

    def close(self):
        if self._h5file is not None:
            self._h5file.close()
            self._h5file = None


def read_result(file_path: str) -> Dict[str, np.ndarray]:
    """Load every dataset of a result file into memory."""
    with h5py.File(file_path, 'r') as f:
        return {name: f[name][()] for name in f.keys()}
