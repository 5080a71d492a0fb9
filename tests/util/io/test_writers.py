import json

import numpy as np
import pytest

from hsreg.util.io import hdf5, tiff
from hsreg.util.io.factory import get_result_writer


def _grids():
    rng = np.random.default_rng(0)
    return {
        "registered": rng.random((8, 10)),
        "u": rng.normal(size=(8, 10)),
        "v": rng.normal(size=(8, 10)),
    }


@pytest.mark.parametrize("suffix,writer_cls", [
    (".h5", hdf5.HDF5ResultWriter),
    (".hdf5", hdf5.HDF5ResultWriter),
    (".tif", tiff.TIFFResultWriter),
    (".TIFF", tiff.TIFFResultWriter),
])
def test_factory_selects_writer(tmp_path, suffix, writer_cls):
    writer = get_result_writer(str(tmp_path / f"out{suffix}"))
    assert isinstance(writer, writer_cls)
    writer.close()


def test_factory_explicit_type(tmp_path):
    writer = get_result_writer(str(tmp_path / "out.bin"), file_type="hdf5")
    assert isinstance(writer, hdf5.HDF5ResultWriter)
    writer.close()


def test_factory_unsupported(tmp_path):
    with pytest.raises(ValueError):
        get_result_writer(str(tmp_path / "out.mat"))


def test_hdf5_roundtrip(tmp_path):
    import h5py

    path = tmp_path / "result.h5"
    grids = _grids()
    with get_result_writer(str(path)) as writer:
        writer.write_result(grids, {"options": json.dumps({"alpha": 0.1})})

    loaded = hdf5.read_result(str(path))
    assert set(loaded) == set(grids)
    for name, grid in grids.items():
        np.testing.assert_array_equal(loaded[name], grid)
    with h5py.File(path, "r") as f:
        assert json.loads(f.attrs["options"]) == {"alpha": 0.1}


def test_tiff_roundtrip(tmp_path):
    path = tmp_path / "result.tif"
    grids = _grids()
    with get_result_writer(str(path)) as writer:
        writer.write_result(grids)

    loaded = tiff.read_result(str(path))
    assert list(loaded) == list(grids)
    for name, grid in grids.items():
        np.testing.assert_allclose(loaded[name], grid.astype(np.float32))


def test_tiff_rejects_mixed_shapes(tmp_path):
    writer = tiff.TIFFResultWriter(str(tmp_path / "bad.tif"))
    with pytest.raises(ValueError):
        writer.write_result({"a": np.zeros((4, 4)), "b": np.zeros((5, 4))})
