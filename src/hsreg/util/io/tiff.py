from hsreg.util.io._base import ResultWriter
import numpy as np
import tifffile
from typing import Dict, Optional


class TIFFResultWriter(ResultWriter):
    """
    Writes registration results as one float32 TIFF stack, a page per grid.
    Grid names and attributes go into the JSON metadata of the file.
    """

    def __init__(self, file_path: str, **kwargs):
        super().__init__()
        self.file_path = file_path

    def write_result(self, grids: Dict[str, np.ndarray], attrs: Optional[Dict[str, object]] = None):
        names = list(grids.keys())
        shapes = {np.asarray(g).shape for g in grids.values()}
        if len(shapes) != 1:
            raise ValueError(f"All grids must share one shape to be stacked, got {shapes}")
        stack = np.stack([np.asarray(grids[n], dtype=np.float32) for n in names], axis=0)
        metadata = {"datasets": names}
        metadata.update({k: v for k, v in (attrs or {}).items()})
        tifffile.imwrite(self.file_path, stack, photometric="minisblack", metadata=metadata)
        self.initialized = True

    def close(self):
        pass


def read_result(file_path: str) -> Dict[str, np.ndarray]:
    """Load a stack written by ``TIFFResultWriter`` back into named grids."""
    with tifffile.TiffFile(file_path) as tif:
        stack = tif.asarray()
        metadata = tif.shaped_metadata[0] if tif.shaped_metadata else {}
    names = metadata.get("datasets", [f"page{i}" for i in range(stack.shape[0])])
    return {name: stack[i] for i, name in enumerate(names)}
