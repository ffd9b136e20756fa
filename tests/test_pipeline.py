"""Tests for the SpectrumPipeline module."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from spectroviz.config import AnalysisConfig, VisualizerConfig
from spectroviz.core.framer import AudioBuffer
from spectroviz.errors import (
    ConfigError,
    ExternalProcessError,
    InputError,
    InsufficientSamplesError,
    OutputError,
)
from spectroviz.pipeline import SpectrumPipeline, default_viz_path, ensure_writable
from spectroviz.render.base import FrameConsumer


class RecordingConsumer(FrameConsumer):
    def __init__(self):
        self.began = None
        self.indices = []
        self.finished = False

    def begin(self, n_bins, n_frames, frame_rate):
        super().begin(n_bins, n_frames, frame_rate)
        self.began = (n_bins, n_frames, frame_rate)

    def consume(self, magnitude, frame_index):
        assert magnitude.shape == (self.n_bins,)
        self.indices.append(frame_index)

    def finish(self):
        self.finished = True


class TestRun:
    def test_fans_out_to_every_consumer(self, sine_buffer):
        a, b = RecordingConsumer(), RecordingConsumer()
        n_frames = SpectrumPipeline().run(sine_buffer, [a, b])

        assert n_frames == 341
        for consumer in (a, b):
            assert consumer.began == (513, 341, pytest.approx(44100 / 256))
            assert consumer.indices == list(range(341))
            assert consumer.finished

    def test_progress_callback(self, sine_buffer):
        progress = []
        SpectrumPipeline().run(sine_buffer, [], progress_callback=lambda c, t: progress.append((c, t)))

        assert len(progress) == 341
        assert progress[-1] == (341, 341)

    def test_short_buffer_fails_before_begin(self):
        consumer = RecordingConsumer()
        buf = AudioBuffer.from_array(np.zeros(100), 44100)

        with pytest.raises(InsufficientSamplesError):
            SpectrumPipeline().run(buf, [consumer])
        assert consumer.began is None

    def test_max_duration(self, temp_audio_file):
        pipeline = SpectrumPipeline(AnalysisConfig(max_duration=1.0))
        buf = pipeline.load(temp_audio_file)

        assert buf.n_frames == 44100
        assert pipeline.frame_count(buf) == 169


class TestRenderSpectrogram:
    def test_sine_spectrogram(self, temp_audio_file, tmp_path):
        output = tmp_path / "spectrogram.png"
        result = SpectrumPipeline().render_spectrogram(temp_audio_file, output)

        assert result.output_path == output
        assert (result.n_bins, result.n_frames) == (513, 341)
        assert abs(result.dominant_bin - 10) <= 1
        assert not result.degenerate
        with Image.open(output) as img:
            assert img.size == (341, 513)

    def test_silence_is_uniform(self, silent_audio_file, tmp_path, capsys):
        output = tmp_path / "silence.png"
        result = SpectrumPipeline().render_spectrogram(silent_audio_file, output)

        assert result.degenerate
        assert "no dynamic range" in capsys.readouterr().err
        with Image.open(output) as img:
            pixels = np.asarray(img)
        assert np.all(pixels == pixels[0, 0])

    def test_missing_input(self, tmp_path):
        with pytest.raises(InputError):
            SpectrumPipeline().render_spectrogram(tmp_path / "missing.wav", tmp_path / "s.png")

    def test_output_is_directory(self, temp_audio_file, tmp_path):
        with pytest.raises(OutputError):
            SpectrumPipeline().render_spectrogram(temp_audio_file, tmp_path)

    def test_unknown_extension_fails_before_analysis(self, temp_audio_file, tmp_path):
        progress = []

        with pytest.raises(OutputError):
            SpectrumPipeline().render_spectrogram(
                temp_audio_file,
                tmp_path / "out.xyz",
                progress_callback=lambda c, t: progress.append(c),
            )
        assert progress == []
        assert not (tmp_path / "out.xyz").exists()


class TestRenderVisualizer:
    def test_renders_and_muxes(self, temp_audio_file, tmp_path, fake_writer_cls):
        writer = fake_writer_cls(tmp_path / "video.mp4")
        calls = []

        result = SpectrumPipeline().render_visualizer(
            temp_audio_file,
            output_path=tmp_path / "out_viz.mp4",
            frame_sink=writer,
            muxer=lambda v, a, o: calls.append((v, a, o)),
        )

        assert writer.opened and writer.closed
        assert result.n_frames == 341
        assert result.frames_emitted == 57
        assert len(writer.frames) == 57
        assert all(shape == (600, 800, 3) for shape in writer.frames)
        assert result.decimation == 6
        assert result.output_fps == 29
        assert result.muxed
        assert result.output_path == tmp_path / "out_viz.mp4"
        assert calls == [(tmp_path / "video.mp4", temp_audio_file, tmp_path / "out_viz.mp4")]

    def test_mux_failure_keeps_video(self, temp_audio_file, tmp_path, fake_writer_cls, capsys):
        def failing_muxer(video, audio, output):
            raise ExternalProcessError("ffmpeg mux failed with code 1", returncode=1)

        result = SpectrumPipeline().render_visualizer(
            temp_audio_file,
            output_path=tmp_path / "out.mp4",
            frame_sink=fake_writer_cls(tmp_path / "video.mp4"),
            muxer=failing_muxer,
        )

        assert not result.muxed
        assert result.output_path == tmp_path / "video.mp4"
        assert "mux failed" in result.mux_error
        assert "Warning" in capsys.readouterr().err

    def test_no_mux(self, temp_audio_file, tmp_path, fake_writer_cls):
        calls = []
        result = SpectrumPipeline().render_visualizer(
            temp_audio_file,
            frame_sink=fake_writer_cls(tmp_path / "video.mp4"),
            mux=False,
            muxer=lambda *args: calls.append(args),
        )

        assert calls == []
        assert not result.muxed
        assert result.output_path == tmp_path / "video.mp4"

    def test_default_writer_uses_config(self, temp_audio_file, tmp_path, fake_writer_cls, monkeypatch):
        monkeypatch.setattr("spectroviz.pipeline.VideoWriter", fake_writer_cls)
        cfg = VisualizerConfig(width=320, height=240, decimation=None, target_fps=15)

        result = SpectrumPipeline().render_visualizer(
            temp_audio_file, video_path=tmp_path / "v.mp4", config=cfg, mux=False
        )

        writer = fake_writer_cls.instances[-1]
        assert (writer.width, writer.height) == (320, 240)
        assert writer.fps == result.output_fps == 16
        assert result.decimation == 11
        assert all(shape == (240, 320, 3) for shape in writer.frames)

    def test_short_input_fails_before_opening_output(self, tmp_path, fake_writer_cls):
        import soundfile as sf

        short = tmp_path / "short.wav"
        sf.write(short, np.zeros(500, dtype=np.float32), 44100)
        writer = fake_writer_cls(tmp_path / "video.mp4")

        with pytest.raises(InsufficientSamplesError):
            SpectrumPipeline().render_visualizer(short, frame_sink=writer, mux=False)
        assert not writer.opened

    def test_video_path_is_directory(self, temp_audio_file, tmp_path, fake_writer_cls, monkeypatch):
        monkeypatch.setattr("spectroviz.pipeline.VideoWriter", fake_writer_cls)
        progress = []

        with pytest.raises(OutputError):
            SpectrumPipeline().render_visualizer(
                temp_audio_file,
                video_path=tmp_path,
                mux=False,
                progress_callback=lambda c, t: progress.append(c),
            )
        assert progress == []
        assert fake_writer_cls.instances == []

    def test_muxed_path_is_directory(self, temp_audio_file, tmp_path, fake_writer_cls):
        writer = fake_writer_cls(tmp_path / "video.mp4")

        with pytest.raises(OutputError):
            SpectrumPipeline().render_visualizer(
                temp_audio_file, output_path=tmp_path, frame_sink=writer
            )
        assert not writer.opened

    def test_missing_input_reported_before_bad_config(self, tmp_path):
        cfg = VisualizerConfig(n_bands=10_000)

        with pytest.raises(InputError):
            SpectrumPipeline().render_visualizer(tmp_path / "missing.wav", config=cfg, mux=False)

    def test_bad_config_fails_before_opening_output(self, temp_audio_file, tmp_path, fake_writer_cls):
        writer = fake_writer_cls(tmp_path / "video.mp4")

        with pytest.raises(ConfigError):
            SpectrumPipeline().render_visualizer(
                temp_audio_file,
                config=VisualizerConfig(n_bands=10_000),
                frame_sink=writer,
                mux=False,
            )
        assert not writer.opened


class TestHelpers:
    def test_default_viz_path(self):
        assert default_viz_path("/music/song.flac") == Path("song_viz.mp4")

    def test_ensure_writable_creates_parent(self, tmp_path):
        target = tmp_path / "a" / "b" / "out.png"
        assert ensure_writable(target) == target
        assert target.parent.is_dir()
