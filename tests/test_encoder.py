"""Tests for bongolab.encoder module."""

import io

import numpy as np
import pytest
from PIL import Image

from bongolab.config import QUANTIZERS, AnimationConfig
from bongolab.encoder import (
    AnimationParameters,
    GifSequenceEncoder,
    encode,
    gif_delay_ms,
    quantize_frame,
)
from bongolab.error_handling import (
    EncodeIOError,
    FrameDimensionMismatchError,
    InvalidInputError,
)
from bongolab.synthesis import synthesize

from conftest import ARM, DRUM, color_close, read_gif_frames


def _rgb(width, height, color):
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[...] = color
    return pixels


class FailingSink(io.RawIOBase):
    """Binary stream that accepts ``fail_after`` writes and then raises."""

    def __init__(self, fail_after=0):
        self.fail_after = fail_after
        self.writes = 0

    def writable(self):
        return True

    def write(self, data):
        if self.writes >= self.fail_after:
            raise OSError(28, "No space left on device")
        self.writes += 1
        return len(data)


class TestAnimationParameters:
    """Tests for AnimationParameters validation."""

    @pytest.mark.fast
    def test_defaults(self):
        params = AnimationParameters()

        assert params.repeat == 0
        assert params.delay_ms == 200
        assert params.quality == 10
        assert params.quantizer == "mediancut"

    @pytest.mark.fast
    def test_from_config(self):
        config = AnimationConfig(DELAY_MS=50, REPEAT=2, QUALITY=1, QUANTIZER="fastoctree")
        params = AnimationParameters.from_config(config)

        assert params == AnimationParameters(
            repeat=2, delay_ms=50, quality=1, quantizer="fastoctree"
        )

    @pytest.mark.fast
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"repeat": -1},
            {"repeat": 70000},
            {"delay_ms": -10},
            {"quality": 0},
            {"quality": 31},
            {"quantizer": "neuquant"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidInputError):
            AnimationParameters(**kwargs)


class TestQuantizeFrame:
    """Tests for quantize_frame."""

    @pytest.mark.fast
    @pytest.mark.parametrize("quantizer", QUANTIZERS)
    def test_produces_palette_image(self, quantizer):
        pixels = _rgb(40, 30, (10, 200, 30))
        pixels[:10, :10] = (250, 250, 250)

        image = quantize_frame(pixels, quantizer, quality=1)

        assert image.mode == "P"
        assert image.size == (40, 30)
        rgb = image.convert("RGB")
        assert color_close(rgb.getpixel((20, 20)), (10, 200, 30))
        assert color_close(rgb.getpixel((5, 5)), (250, 250, 250))

    @pytest.mark.fast
    def test_alpha_is_dropped(self):
        pixels = np.zeros((10, 10, 4), dtype=np.uint8)
        pixels[...] = (0, 0, 255, 0)

        image = quantize_frame(pixels)

        assert color_close(image.convert("RGB").getpixel((0, 0)), (0, 0, 255))


class TestEncode:
    """Tests for encode with stream and path sinks."""

    @pytest.mark.fast
    def test_bongo_sequence_round_trip(self, red_image):
        """Eight synthesized frames decode as eight 200ms frames looping forever."""
        buf = io.BytesIO()
        result = encode(synthesize(red_image, 8), buf)

        assert result.frame_count == 8
        assert (result.width, result.height) == (200, 200)
        assert result.bytes_written == len(buf.getvalue())
        assert result.output_path is None
        assert buf.getvalue().startswith(b"GIF89a")
        assert buf.getvalue().endswith(b";")

        buf.seek(0)
        frames, durations, loop = read_gif_frames(buf)
        assert len(frames) == 8
        assert durations == [200] * 8
        assert loop == 0

        first = frames[0]
        assert first.shape == (200, 200, 3)
        assert color_close(first[5, 5], (255, 0, 0))
        assert color_close(first[81, 21], ARM)
        assert color_close(first[140, 100], DRUM)

    @pytest.mark.fast
    def test_identical_frames_are_kept(self):
        frame = _rgb(20, 20, (0, 128, 255))
        buf = io.BytesIO()

        encode([frame, frame, frame], buf)

        buf.seek(0)
        frames, _, _ = read_gif_frames(buf)
        assert len(frames) == 3

    @pytest.mark.fast
    def test_custom_timing_and_repeat(self):
        buf = io.BytesIO()
        params = AnimationParameters(repeat=3, delay_ms=100)

        encode([_rgb(16, 16, (255, 255, 0)), _rgb(16, 16, (0, 0, 0))], buf, params)

        buf.seek(0)
        frames, durations, loop = read_gif_frames(buf)
        assert durations == [100, 100]
        assert loop == 3
        assert color_close(frames[0][0, 0], (255, 255, 0))
        assert color_close(frames[1][0, 0], (0, 0, 0))

    @pytest.mark.fast
    @pytest.mark.parametrize("delay_ms,stored_ms", [(209, 210), (205, 210), (204, 200), (996, 1000)])
    def test_delay_rounded_to_hundredths(self, delay_ms, stored_ms):
        """Delays that are not a multiple of 10 ms round to the nearest one."""
        buf = io.BytesIO()

        encode([_rgb(16, 16, (255, 0, 0)), _rgb(16, 16, (0, 0, 255))], buf, AnimationParameters(delay_ms=delay_ms))

        buf.seek(0)
        _, durations, _ = read_gif_frames(buf)
        assert durations == [stored_ms, stored_ms]

    @pytest.mark.fast
    def test_gif_delay_ms(self):
        assert gif_delay_ms(200) == 200
        assert gif_delay_ms(655350) == 655350

    @pytest.mark.fast
    def test_path_sink(self, tmp_path, red_image):
        target = tmp_path / "out" / "cat.gif"

        result = encode(synthesize(red_image, 4), target)

        assert result.output_path == target
        assert target.exists()
        assert target.stat().st_size == result.bytes_written
        with Image.open(target) as img:
            assert img.format == "GIF"
            assert img.n_frames == 4
        assert [p.name for p in target.parent.iterdir()] == ["cat.gif"]

    @pytest.mark.fast
    def test_stream_is_not_closed(self):
        buf = io.BytesIO()
        encode([_rgb(12, 12, (1, 2, 3))], buf)

        assert not buf.closed

    @pytest.mark.fast
    def test_empty_sequence_rejected(self, tmp_path):
        target = tmp_path / "empty.gif"

        with pytest.raises(InvalidInputError, match="empty"):
            encode([], target)

        assert not target.exists()
        assert list(tmp_path.iterdir()) == []


class TestGifSequenceEncoder:
    """Tests for incremental encoding and failure behaviour."""

    @pytest.mark.fast
    def test_header_written_with_first_frame(self):
        buf = io.BytesIO()
        encoder = GifSequenceEncoder(buf)

        assert buf.getvalue() == b""
        encoder.add_frame(_rgb(10, 10, (5, 5, 5)))

        assert buf.getvalue().startswith(b"GIF89a")
        assert b"NETSCAPE2.0" in buf.getvalue()
        assert encoder.size == (10, 10)
        assert encoder.frame_count == 1

    @pytest.mark.fast
    def test_dimension_mismatch(self):
        buf = io.BytesIO()
        encoder = GifSequenceEncoder(buf)
        encoder.add_frame(_rgb(20, 20, (0, 0, 0)))
        written = encoder.bytes_written

        with pytest.raises(FrameDimensionMismatchError, match="expected 20x20"):
            encoder.add_frame(_rgb(20, 10, (0, 0, 0)))

        assert encoder.bytes_written == written
        assert encoder.frame_count == 1

    @pytest.mark.fast
    def test_dimension_mismatch_leaves_no_file(self, tmp_path):
        target = tmp_path / "broken.gif"
        frames = [_rgb(20, 20, (0, 0, 0)), _rgb(30, 20, (0, 0, 0))]

        with pytest.raises(FrameDimensionMismatchError):
            encode(frames, target)

        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.fast
    def test_malformed_frame_rejected(self):
        encoder = GifSequenceEncoder(io.BytesIO())

        with pytest.raises(InvalidInputError):
            encoder.add_frame(np.zeros((10, 10), dtype=np.uint8))

    @pytest.mark.fast
    @pytest.mark.parametrize("fail_after", [0, 3])
    def test_sink_write_failure(self, fail_after):
        sink = FailingSink(fail_after=fail_after)

        with pytest.raises(EncodeIOError, match="No space left"):
            encode([_rgb(10, 10, (9, 9, 9))] * 2, sink)

    @pytest.mark.fast
    def test_finish_is_idempotent(self):
        buf = io.BytesIO()
        encoder = GifSequenceEncoder(buf)
        encoder.add_frame(_rgb(10, 10, (0, 0, 0)))

        first = encoder.finish()
        second = encoder.finish()

        assert first == second == len(buf.getvalue())
        with pytest.raises(RuntimeError):
            encoder.add_frame(_rgb(10, 10, (0, 0, 0)))

    @pytest.mark.fast
    def test_context_manager_finishes_on_clean_exit(self):
        buf = io.BytesIO()

        with GifSequenceEncoder(buf, AnimationParameters(delay_ms=40)) as encoder:
            encoder.add_frame(_rgb(10, 10, (0, 0, 0)))
            encoder.add_frame(_rgb(10, 10, (255, 255, 255)))

        assert encoder.finished
        assert buf.getvalue().endswith(b";")
        buf.seek(0)
        frames, durations, _ = read_gif_frames(buf)
        assert len(frames) == 2
        assert durations == [40, 40]

    @pytest.mark.fast
    def test_context_manager_skips_trailer_on_error(self):
        buf = io.BytesIO()

        with pytest.raises(FrameDimensionMismatchError):
            with GifSequenceEncoder(buf) as encoder:
                encoder.add_frame(_rgb(10, 10, (0, 0, 0)))
                encoder.add_frame(_rgb(12, 10, (0, 0, 0)))

        assert not encoder.finished
        assert not buf.getvalue().endswith(b";")
