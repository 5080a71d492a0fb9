from typing import Optional
from pathlib import Path

from hsreg.util.io._base import SeriesReader, ResultWriter


def get_series_reader(file_path: str, **kwargs) -> SeriesReader:
    """
    Factory function to create appropriate reader based on file extension.

    Args:
        file_path: Path to an image series
        **kwargs: Additional reader-specific arguments

    Returns:
        Appropriate SeriesReader subclass instance
    """
    from hsreg.util.io.dat import DATFileReader

    ext = Path(file_path).suffix.lower()

    readers = {
        '.dat': DATFileReader,
    }

    reader_class = readers.get(ext)
    if reader_class:
        return reader_class(file_path, **kwargs)
    else:
        raise ValueError(f"Unsupported file format: {ext}")


def get_result_writer(file_path: str, file_type: Optional[str] = None, **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate writer based on file extension.

    Args:
        file_path: Output file path
        file_type: Optional explicit file type (overrides extension)
        **kwargs: Additional writer-specific arguments

    Returns:
        Appropriate ResultWriter subclass instance
    """
    # Import writers here to avoid circular imports
    from hsreg.util.io.tiff import TIFFResultWriter
    from hsreg.util.io.hdf5 import HDF5ResultWriter

    if file_type:
        ext = '.' + file_type.lower()
    else:
        ext = Path(file_path).suffix.lower()

    writers = {
        '.tif': TIFFResultWriter,
        '.tiff': TIFFResultWriter,
        '.h5': HDF5ResultWriter,
        '.hdf5': HDF5ResultWriter,
        '.hdf': HDF5ResultWriter,
    }

    writer_class = writers.get(ext)
    if writer_class:
        return writer_class(str(file_path), **kwargs)
    else:
        raise ValueError(f"Unsupported output format: {ext}")
