"""Tests for clipedit.audio — replace/mix under each placement policy."""

import pytest

from clipedit.audio import (
    LOOP_FRAME_CEILING,
    build_audio,
    custom_window,
    effective_mode,
    fit_audio,
    fit_video,
    output_duration,
    source_window,
)
from clipedit.errors import InputError
from clipedit.profiles import FINAL
from clipedit.request import AudioEdit

from conftest import make_info


@pytest.fixture
def video():
    return make_info("/m/video.mp4", duration=10.0, frame_rate=30.0)


def _audio(duration):
    return make_info("/m/music.mp3", duration=duration, has_video=False)


def _build(video, audio, tmp_path, **edit):
    return build_audio(video, audio, AudioEdit("/m/music.mp3", **edit), FINAL, tmp_path / "o.mp4")


class TestWindows:
    def test_source_window_full(self):
        assert source_window(_audio(30), AudioEdit("/m.mp3")) == (0.0, 30.0)

    def test_source_window_trimmed(self):
        edit = AudioEdit("/m.mp3", trim_start=5, trim_end=12)
        assert source_window(_audio(30), edit) == (5.0, 12.0)

    def test_source_window_outside_file(self):
        with pytest.raises(InputError, match="trim range"):
            source_window(_audio(10), AudioEdit("/m.mp3", trim_start=15))

    def test_custom_window_clamped(self, video):
        edit = AudioEdit("/m.mp3", placement="custom", custom_start=8, custom_end=20)
        assert custom_window(video, edit) == (8.0, 10.0)

    def test_custom_window_outside_video(self, video):
        edit = AudioEdit("/m.mp3", placement="custom", custom_start=12, custom_end=20)
        with pytest.raises(InputError, match="outside"):
            custom_window(video, edit)


class TestEffectiveMode:
    def test_mix_kept(self, video):
        assert effective_mode(video, AudioEdit("/m.mp3", mode="mix_video_main")) == "mix_video_main"

    def test_mix_on_silent_video_degrades(self):
        silent = make_info(has_audio=False)
        assert effective_mode(silent, AudioEdit("/m.mp3", mode="mix_inserted_main")) == "replace"


class TestOutputDuration:
    def test_audio_priority_uses_audio(self, video):
        assert output_duration(video, _audio(25), AudioEdit("/m.mp3")) == 25.0

    def test_audio_priority_uses_trimmed_audio(self, video):
        edit = AudioEdit("/m.mp3", trim_start=2, trim_end=8)
        assert output_duration(video, _audio(25), edit) == 6.0

    @pytest.mark.parametrize("placement", ["video_priority", "custom"])
    def test_other_placements_keep_video(self, video, placement):
        edit = AudioEdit("/m.mp3", placement=placement, custom_start=1, custom_end=2)
        assert output_duration(video, _audio(25), edit) == 10.0


class TestFitFilters:
    def test_fit_audio_loops_short_track(self):
        ops = [f.name for f in fit_audio(3.0, 10.0)]
        assert ops == ["aloop", "atrim", "asetpts"]

    def test_fit_audio_cuts_long_track(self):
        ops = [f.name for f in fit_audio(30.0, 10.0)]
        assert ops == ["atrim", "asetpts"]

    def test_fit_video_loops(self, video):
        filters = fit_video(video, 25.0)
        loop = filters[0]
        assert loop.name == "loop"
        assert loop.option("loop") == 3
        assert loop.option("size") == 300
        assert filters[1].option("duration") == 25.0

    def test_fit_video_loop_size_capped(self):
        long_video = make_info(duration=1200.0, frame_rate=60.0)
        assert fit_video(long_video, 2000.0)[0].option("size") == LOOP_FRAME_CEILING

    def test_fit_video_trims(self, video):
        assert [f.name for f in fit_video(video, 4.0)] == ["trim", "setpts"]

    def test_fit_video_exact(self, video):
        assert fit_video(video, 10.0) is None


class TestAudioPriority:
    def test_longer_audio_loops_video(self, video, tmp_path):
        cmd = _build(video, _audio(25), tmp_path)
        assert cmd.duration == 25.0
        assert cmd.graph.filters("loop")
        assert cmd.maps == ["[vout]", "[aout]"]
        assert "libx264" in cmd.output_options

    def test_shorter_audio_trims_video(self, video, tmp_path):
        cmd = _build(video, _audio(4), tmp_path)
        assert cmd.duration == 4.0
        assert not cmd.graph.filters("loop")
        assert cmd.graph.filters("trim")[0].option("duration") == 4.0

    def test_equal_length_copies_video(self, video, tmp_path):
        cmd = _build(video, _audio(10), tmp_path)
        assert cmd.maps == ["0:v:0", "[aout]"]
        assert cmd.output_options[:2] == ["-c:v", "copy"]

    def test_output_cut_to_duration(self, video, tmp_path):
        cmd = _build(video, _audio(25), tmp_path)
        opts = cmd.output_options
        assert opts[opts.index("-t") + 1] == "25.000"


class TestVideoPriority:
    def test_short_audio_loops(self, video, tmp_path):
        cmd = _build(video, _audio(3), tmp_path, placement="video_priority")
        assert cmd.duration == 10.0
        assert cmd.graph.filters("aloop")
        assert cmd.output_options[:2] == ["-c:v", "copy"]

    def test_long_audio_cut(self, video, tmp_path):
        cmd = _build(video, _audio(30), tmp_path, placement="video_priority")
        assert not cmd.graph.filters("aloop")
        assert cmd.duration == 10.0

    def test_silent_video_replace(self, tmp_path):
        silent = make_info("/m/v.mp4", duration=10.0, has_audio=False)
        cmd = _build(silent, _audio(3), tmp_path, placement="video_priority", mode="mix_video_main")
        assert not cmd.graph.filters("amix")
        assert cmd.graph.filters("aloop")
        assert "[0:a]" not in cmd.graph.render()


class TestMix:
    def test_mix_video_main_volumes(self, video, tmp_path):
        cmd = _build(
            video, _audio(10), tmp_path,
            mode="mix_video_main", background_volume=0.3, main_volume=0.9,
        )
        rendered = cmd.graph.render()
        assert "[orig]volume=0.9[orig_vol]" in rendered
        assert "[new]volume=0.3[new_vol]" in rendered
        amix = cmd.graph.filters("amix")[0]
        assert amix.option("normalize") == 0
        assert amix.option("duration") == "longest"

    def test_mix_inserted_main_volumes(self, video, tmp_path):
        cmd = _build(
            video, _audio(10), tmp_path,
            mode="mix_inserted_main", background_volume=0.25,
        )
        rendered = cmd.graph.render()
        assert "[orig]volume=0.25[orig_vol]" in rendered
        assert "[new]volume=1[new_vol]" in rendered

    def test_mix_audio_priority_fits_original(self, video, tmp_path):
        cmd = _build(video, _audio(25), tmp_path, mode="mix_video_main")
        # original track looped to the 25s output as well
        assert len(cmd.graph.filters("aloop")) == 1


class TestCustomPlacement:
    def test_middle_window(self, video, tmp_path):
        cmd = _build(video, _audio(30), tmp_path, placement="custom", custom_start=4, custom_end=7)
        concat = cmd.graph.filters("concat")[0]
        assert concat.option("n") == 3
        assert concat.option("v") == 0
        assert cmd.duration == 10.0
        assert cmd.output_options[:2] == ["-c:v", "copy"]

    def test_window_from_start(self, video, tmp_path):
        cmd = _build(video, _audio(30), tmp_path, placement="custom", custom_start=0, custom_end=7)
        assert cmd.graph.filters("concat")[0].option("n") == 2

    def test_window_covers_video(self, video, tmp_path):
        cmd = _build(video, _audio(30), tmp_path, placement="custom", custom_start=0, custom_end=10)
        assert not cmd.graph.filters("concat")
        assert cmd.graph.filters("anull")

    def test_short_audio_looped_into_window(self, video, tmp_path):
        cmd = _build(video, _audio(1), tmp_path, placement="custom", custom_start=2, custom_end=8)
        aloop = cmd.graph.filters("aloop")
        assert len(aloop) == 1
        assert aloop[0].option("size") == 44100

    def test_tiny_tail_dropped(self, video, tmp_path):
        cmd = _build(video, _audio(30), tmp_path, placement="custom", custom_start=2, custom_end=9.95)
        assert cmd.graph.filters("concat")[0].option("n") == 2

    def test_silent_video_outside_window_is_silence(self, tmp_path):
        silent = make_info("/m/v.mp4", duration=10.0, has_audio=False)
        cmd = _build(silent, _audio(30), tmp_path, placement="custom", custom_start=4, custom_end=7)
        assert len(cmd.graph.filters("anullsrc")) == 2

    def test_mix_in_window(self, video, tmp_path):
        cmd = _build(
            video, _audio(30), tmp_path,
            placement="custom", custom_start=4, custom_end=7, mode="mix_video_main",
        )
        assert cmd.graph.filters("amix")
        assert "[before][window][after]concat" in cmd.graph.render()
