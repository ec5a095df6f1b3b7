import struct

import numpy as np
import pytest
from PIL import Image as PILImage

from bmptool.chainable.basex import BitmapFileError, Pixel, RGBImage
from bmptool.chainable.bitmapx import (BitmapHeader, BitmapOpener, BitmapSaver, DATA_START_INDEX,
                                       decode_bitmap, encode_bitmap, image_data_size, indexed_path,
                                       read_bitmap, scanline_padding, write_bitmap, write_bitmaps)


@pytest.mark.parametrize("width,padding", [(0, 0), (1, 1), (2, 2), (3, 3), (4, 0), (5, 1)])
def test_scanline_padding(width, padding):
    assert scanline_padding(width) == padding
    assert (width * 3 + scanline_padding(width)) % 4 == 0


def test_header_fields_at_fixed_offsets(noise_image):
    data = encode_bitmap(noise_image)
    data_size = (7 * 3 + 3) * 4

    assert data[0:2] == b"BM"
    assert struct.unpack_from("<I", data, 2)[0] == len(data) == 54 + data_size
    assert struct.unpack_from("<I", data, 10)[0] == 54
    assert struct.unpack_from("<I", data, 14)[0] == 40
    assert struct.unpack_from("<i", data, 18)[0] == 7
    assert struct.unpack_from("<i", data, 22)[0] == 4
    assert struct.unpack_from("<H", data, 26)[0] == 1
    assert struct.unpack_from("<H", data, 28)[0] == 24
    assert struct.unpack_from("<I", data, 34)[0] == data_size == image_data_size(7, 4)


def test_pixel_data_is_bottom_up_bgr_and_padded():
    image = RGBImage(1, 2)
    image.set_rgb(0, 0, Pixel(1, 2, 3))  # top row
    image.set_rgb(0, 1, Pixel(4, 5, 6))  # bottom row

    data = encode_bitmap(image)[DATA_START_INDEX:]
    assert data == bytes([6, 5, 4, 0, 3, 2, 1, 0])


def test_header_pack_unpack():
    header = BitmapHeader.for_image(7, 4)
    assert BitmapHeader.unpack(header.pack()) == header
    assert header.expected_file_size() == header.file_size


def test_file_round_trip(tmp_path, noise_image):
    path = tmp_path / "copy.bmp"
    write_bitmap(path, noise_image)
    assert read_bitmap(path) == noise_image


def test_reencoding_reproduces_pixel_region(bitmap_file, tmp_path):
    copy_path = tmp_path / "copy.bmp"
    write_bitmap(copy_path, read_bitmap(bitmap_file))

    original = bitmap_file.read_bytes()
    copied = copy_path.read_bytes()
    assert copied[DATA_START_INDEX:] == original[DATA_START_INDEX:]


def test_empty_image_round_trip():
    assert decode_bitmap(encode_bitmap(RGBImage(0, 3))) == RGBImage(0, 3)


def test_pillow_reads_our_bitmaps(bitmap_file, noise_image):
    with PILImage.open(bitmap_file) as img:
        assert img.size == (7, 4)
        assert img.mode == "RGB"
        # Pillow arrays are (height, width, channels)
        assert np.array_equal(np.asarray(img), noise_image.pixels.transpose(1, 0, 2))


def test_we_read_pillow_bitmaps(tmp_path, noise_image):
    path = tmp_path / "pillow.bmp"
    PILImage.fromarray(noise_image.pixels.transpose(1, 0, 2).copy()).save(path, format="BMP")
    assert read_bitmap(path) == noise_image


def test_missing_file(tmp_path):
    path = tmp_path / "nope.bmp"
    with pytest.raises(BitmapFileError) as info:
        read_bitmap(path)
    assert info.value.filename == str(path)
    assert "cannot be read" in info.value.message


def test_wrong_signature(tmp_path, noise_image):
    path = tmp_path / "fake.bmp"
    path.write_bytes(b"PK" + encode_bitmap(noise_image)[2:])
    with pytest.raises(BitmapFileError) as info:
        read_bitmap(path)
    assert info.value.filename == str(path)
    assert info.value.message == "File is not a bitmap"


def test_declared_size_mismatch(tmp_path, noise_image):
    data = bytearray(encode_bitmap(noise_image))
    struct.pack_into("<I", data, 2, len(data) + 1)
    path = tmp_path / "bad_size.bmp"
    path.write_bytes(bytes(data))
    with pytest.raises(BitmapFileError, match="not a valid bitmap"):
        read_bitmap(path)


def test_truncated_pixel_data(noise_image):
    data = encode_bitmap(noise_image)
    with pytest.raises(BitmapFileError, match="not a valid bitmap"):
        decode_bitmap(data[:-5], "short.bmp")


def test_truncated_header():
    with pytest.raises(BitmapFileError, match="not a valid bitmap"):
        decode_bitmap(b"BM" + bytes(10))
    with pytest.raises(BitmapFileError, match="not a bitmap"):
        decode_bitmap(b"")


def test_unwritable_target(tmp_path, noise_image):
    with pytest.raises(BitmapFileError, match="cannot be written"):
        write_bitmap(tmp_path / "missing_dir" / "out.bmp", noise_image)


def test_indexed_path(tmp_path):
    assert indexed_path(tmp_path / "out.bmp", 3) == tmp_path / "out3.bmp"
    assert indexed_path("out", 0).name == "out0"


def test_write_single_image_keeps_name(tmp_path, noise_image):
    written = write_bitmaps(tmp_path / "out.bmp", [noise_image])
    assert written == [tmp_path / "out.bmp"]
    assert read_bitmap(tmp_path / "out.bmp") == noise_image


def test_write_many_images_in_order(tmp_path, noise_image, gradient_image):
    images = [noise_image, gradient_image, noise_image]
    written = write_bitmaps(tmp_path / "out.bmp", images)

    assert [p.name for p in written] == ["out0.bmp", "out1.bmp", "out2.bmp"]
    assert not (tmp_path / "out.bmp").exists()
    for path, image in zip(written, images):
        assert read_bitmap(path) == image


def test_opener_and_saver_endpoints(bitmap_file, tmp_path, noise_image):
    opener = BitmapOpener(bitmap_file)
    saver = BitmapSaver(tmp_path / "result.bmp")
    opener.set_next(saver)

    result = opener.execute()

    assert result == [noise_image]
    assert saver.written == [tmp_path / "result.bmp"]
    assert read_bitmap(tmp_path / "result.bmp") == noise_image
