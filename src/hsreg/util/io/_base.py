from abc import ABC, abstractmethod
import numpy as np
from typing import Dict, Optional


class SeriesReader(ABC):
    """
    Abstract base class for image-series readers.
    Series are exposed as (dimx, dimy, dimz, n_dynamics) volumes.
    """
    def __init__(self):
        self.dimx: int = 0
        self.dimy: int = 0
        self.dimz: int = 0
        self.frame_count: int = 0
        self.dtype: Optional[np.dtype] = None

    @abstractmethod
    def read_frames(self, frame_indices: list[int]) -> np.ndarray:
        """Reads specific dynamics by their (0-based) indices."""
        pass

    @abstractmethod
    def get_image(self, dynamic: int, slice_index: int = 0) -> np.ndarray:
        """Returns one 2D slice of one dynamic in display orientation."""
        pass

    @abstractmethod
    def close(self):
        """Closes the file and releases any resources."""
        pass

    def __len__(self) -> int:
        return self.frame_count

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ResultWriter(ABC):
    """
    Abstract base class for registration result writers.
    A result is a set of named 2D grids plus scalar/string attributes.
    """
    def __init__(self):
        self.initialized = False

    @abstractmethod
    def write_result(self, grids: Dict[str, np.ndarray], attrs: Optional[Dict[str, object]] = None):
        """Writes the named grids to the file."""
        pass

    @abstractmethod
    def close(self):
        """Closes the writer and finalizes the file."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
