from hsreg.util.io.dat import DATFileReader, load_dat, save_dat
from hsreg.util.io.factory import get_series_reader, get_result_writer

__all__ = [
    "DATFileReader",
    "load_dat",
    "save_dat",
    "get_series_reader",
    "get_result_writer",
]
