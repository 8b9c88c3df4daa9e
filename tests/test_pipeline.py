"""Tests for bongolab.pipeline module."""

import logging

import pytest

from bongolab.config import AnimationConfig
from bongolab.error_handling import ImageDecodeError, InvalidInputError
from bongolab.pipeline import BongoPipeline, PipelineResult, process_photo

from conftest import ARM, color_close, read_gif_frames


class TestBongoPipeline:
    """End-to-end tests: image file in, animated GIF out."""

    @pytest.mark.fast
    def test_red_photo_end_to_end(self, red_png, tmp_path):
        """A 200x200 red photo becomes 8 looping 200ms frames with arms drawn."""
        output = tmp_path / "generated" / "bongo.gif"

        result = BongoPipeline().process(red_png, output)

        assert isinstance(result, PipelineResult)
        assert result.frame_count == 8
        assert (result.width, result.height) == (200, 200)
        assert result.delay_ms == 200
        assert result.repeat == 0
        assert result.bytes_written == output.stat().st_size

        frames, durations, loop = read_gif_frames(output)
        assert len(frames) == 8
        assert durations == [200] * 8
        assert loop == 0

        # Frame 0: left arm at (20, 80), right arm at (160, 40)
        assert color_close(frames[0][85, 25], ARM)
        assert color_close(frames[0][45, 165], ARM)
        assert color_close(frames[0][45, 25], (255, 0, 0))
        # Frame 4: left arm has swung up to (20, 40)
        assert color_close(frames[4][45, 25], ARM)

    @pytest.mark.fast
    def test_custom_animation_config(self, red_png, tmp_path):
        output = tmp_path / "custom.gif"
        config = AnimationConfig(FRAME_COUNT=4, DELAY_MS=100, REPEAT=2)

        result = process_photo(red_png, output, animation_config=config)

        frames, durations, loop = read_gif_frames(output)
        assert result.frame_count == len(frames) == 4
        assert durations == [100] * 4
        assert loop == 2

    @pytest.mark.fast
    def test_to_dict(self, red_png, tmp_path):
        output = tmp_path / "out.gif"
        data = BongoPipeline().process(red_png, output).to_dict()

        assert data["output_path"] == str(output)
        assert data["input_path"] == str(red_png)
        assert data["frame_count"] == 8
        assert isinstance(data["render_ms"], int)

    @pytest.mark.fast
    def test_too_small_image_leaves_no_output(self, make_png, tmp_path):
        tiny = make_png((9, 9), name="tiny.png")
        output = tmp_path / "out" / "tiny.gif"

        with pytest.raises(InvalidInputError, match="Image too small"):
            BongoPipeline().process(tiny, output)

        assert not output.exists()

    @pytest.mark.fast
    def test_corrupt_input_leaves_no_output(self, tmp_path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"\x89PNG\r\n\x1a\n garbage")
        output = tmp_path / "broken.gif"

        with pytest.raises(ImageDecodeError):
            BongoPipeline().process(broken, output)

        assert not output.exists()

    @pytest.mark.fast
    def test_logs_start_and_completion(self, red_png, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="bongolab.pipeline"):
            BongoPipeline().process(red_png, tmp_path / "logged.gif")

        messages = [r.getMessage() for r in caplog.records]
        assert any("Photo processing started" in m for m in messages)
        assert any("Photo processing completed" in m and "frameCount=8" in m for m in messages)

    @pytest.mark.fast
    def test_logs_failures(self, make_png, tmp_path, caplog):
        tiny = make_png((5, 5), name="tiny.png")

        with caplog.at_level(logging.ERROR, logger="bongolab.pipeline"):
            with pytest.raises(InvalidInputError):
                BongoPipeline().process(tiny, tmp_path / "tiny.gif")

        assert any("Photo processing error" in r.getMessage() for r in caplog.records)
