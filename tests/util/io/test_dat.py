import numpy as np
import pytest

from hsreg.util.io.dat import DATFileReader, load_dat, save_dat
from hsreg.util.io.factory import get_series_reader


def _write_raw(path, header, samples):
    with open(path, "wb") as f:
        f.write(np.asarray([len(header)], dtype="<i4").tobytes())
        f.write(np.asarray(header, dtype="<i4").tobytes())
        f.write(np.asarray(samples, dtype="<f4").tobytes())


def test_column_major_layout(tmp_path):
    """dimx varies fastest in the sample stream."""
    path = tmp_path / "series.dat"
    _write_raw(path, [2, 3, 1], np.arange(6))

    image, dimx, dimy, dimz, no_dyn = load_dat(path)
    assert (dimx, dimy, dimz, no_dyn) == (2, 3, 1, 1)
    assert image.shape == (2, 3, 1, 1)
    np.testing.assert_array_equal(image[:, :, 0, 0], [[0, 2, 4], [1, 3, 5]])


def test_four_entry_header(tmp_path):
    path = tmp_path / "volume.dat"
    _write_raw(path, [2, 2, 3, 2], np.arange(24))

    image, dimx, dimy, dimz, no_dyn = load_dat(path)
    assert (dimx, dimy, dimz, no_dyn) == (2, 2, 3, 2)
    assert image[1, 1, 2, 1] == 23
    assert image[1, 0, 0, 0] == 1


@pytest.mark.parametrize("shape", [(5, 4, 3), (5, 4, 2, 3)])
def test_save_load_roundtrip(tmp_path, shape):
    data = np.random.default_rng(0).random(shape).astype(np.float32)
    path = tmp_path / "roundtrip.dat"
    save_dat(path, data)

    image, dimx, dimy, dimz, no_dyn = load_dat(path)
    expected = data if data.ndim == 4 else data[:, :, np.newaxis, :]
    assert image.dtype == np.float64
    np.testing.assert_array_equal(image, expected)


def test_unsupported_header_size(tmp_path):
    path = tmp_path / "bad.dat"
    _write_raw(path, [2, 2], np.zeros(4))
    with pytest.raises(ValueError, match="header size"):
        load_dat(path)


def test_sample_count_mismatch(tmp_path):
    path = tmp_path / "short.dat"
    _write_raw(path, [4, 4, 2], np.zeros(20))
    with pytest.raises(ValueError, match="expected 32"):
        load_dat(path)


def test_missing_file(tmp_path):
    with pytest.raises(IOError):
        load_dat(tmp_path / "missing.dat")


class TestDATFileReader:

    def setup_method(self):
        rng = np.random.default_rng(1)
        self.data = rng.random((6, 4, 2, 5)).astype(np.float32)

    def test_properties(self, tmp_path):
        path = tmp_path / "series.dat"
        save_dat(path, self.data)
        with DATFileReader(path) as reader:
            assert (reader.dimx, reader.dimy, reader.dimz) == (6, 4, 2)
            assert reader.frame_count == len(reader) == 5
            assert reader.shape == (6, 4, 2, 5)

    def test_read_frames(self, tmp_path):
        path = tmp_path / "series.dat"
        save_dat(path, self.data)
        with DATFileReader(path) as reader:
            frames = reader.read_frames([4, 1])
        assert frames.shape == (2, 6, 4, 2)
        np.testing.assert_array_equal(frames[0], self.data[..., 4])
        np.testing.assert_array_equal(frames[1], self.data[..., 1])

    def test_get_image_orientation(self, tmp_path):
        path = tmp_path / "series.dat"
        save_dat(path, self.data)
        with DATFileReader(path) as reader:
            img = reader.get_image(2, slice_index=1)
        assert img.shape == (4, 6)
        np.testing.assert_array_equal(img, np.flipud(self.data[:, :, 1, 2].T))

    def test_index_errors(self, tmp_path):
        path = tmp_path / "series.dat"
        save_dat(path, self.data)
        with DATFileReader(path) as reader:
            with pytest.raises(IndexError):
                reader.read_frames([5])
            with pytest.raises(IndexError):
                reader.get_image(0, slice_index=2)

    def test_factory(self, tmp_path):
        path = tmp_path / "series.dat"
        save_dat(path, self.data)
        with get_series_reader(str(path)) as reader:
            assert isinstance(reader, DATFileReader)
        with pytest.raises(ValueError):
            get_series_reader(str(tmp_path / "series.avi"))
