"""
Tests for VideoProcessor class.

FFmpeg is mocked so the tests validate the generated invocations without
requiring an FFmpeg installation.
"""

import subprocess
from unittest.mock import Mock, patch

import ffmpeg
import pytest

from mediaflow.processing.config import AudioConfig, VideoConfig
from mediaflow.processing.exceptions import FFmpegNotFoundError, VideoProcessingError
from mediaflow.processing.video_processor import VideoProcessor


def _fake_run(output_path, content=b"fake output"):
    """ffmpeg.run replacement that writes the expected artifact."""
    def run(*args, **kwargs):
        output_path.write_bytes(content)
    return run


class TestVideoProcessor:
    """Test cases for VideoProcessor functionality."""

    @pytest.fixture
    def mock_ffmpeg_available(self):
        """Mock FFmpeg availability check."""
        with patch('mediaflow.processing.video_processor.VideoProcessor._check_ffmpeg_available', return_value=True):
            yield

    @pytest.fixture
    def processor(self, mock_ffmpeg_available):
        """Create VideoProcessor instance for testing."""
        return VideoProcessor()

    @pytest.fixture
    def mock_ffmpeg(self):
        with patch('mediaflow.processing.video_processor.ffmpeg') as mocked:
            mocked.Error = ffmpeg.Error
            yield mocked

    def test_init_default_config(self, mock_ffmpeg_available):
        processor = VideoProcessor()
        assert processor.default_crf == 23
        assert processor.preserve_metadata is True
        assert processor.ffmpeg_path == 'ffmpeg'

    def test_init_custom_config(self, mock_ffmpeg_available):
        processor = VideoProcessor({
            'video_quality_crf': 18,
            'preserve_original_metadata': False,
            'ffprobe_path': '/opt/ffprobe',
        })
        assert processor.default_crf == 18
        assert processor.preserve_metadata is False
        assert processor.ffprobe_path == '/opt/ffprobe'

    def test_init_ffmpeg_not_available(self):
        with patch('mediaflow.processing.video_processor.VideoProcessor._check_ffmpeg_available', return_value=False):
            with pytest.raises(FFmpegNotFoundError):
                VideoProcessor()

    def test_check_ffmpeg_missing_binary(self):
        with patch('mediaflow.processing.video_processor.subprocess.run', side_effect=FileNotFoundError):
            with pytest.raises(FFmpegNotFoundError):
                VideoProcessor({'ffmpeg_path': '/nonexistent/ffmpeg'})

    def test_check_ffmpeg_runs_version(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout='ffmpeg version 6', stderr='')
        with patch('mediaflow.processing.video_processor.subprocess.run', return_value=completed) as run:
            VideoProcessor({'ffmpeg_path': '/usr/bin/ffmpeg'})
        assert run.call_args[0][0] == ['/usr/bin/ffmpeg', '-version']

    def test_process_video_builds_invocation(self, processor, mock_ffmpeg, sample_video, temp_dir):
        output_path = temp_dir / "out.mp4"
        mock_ffmpeg.run.side_effect = _fake_run(output_path)
        config = VideoConfig(
            width=1280, height=720, codec='libx264', audio_codec='aac',
            bitrate=2_500_000, framerate=30.0, output_format='mp4',
        )

        result = processor.process_video(sample_video, output_path, config)

        assert result.success
        assert result.output_path == str(output_path)
        mock_ffmpeg.input.assert_called_once_with(str(sample_video))
        kwargs = mock_ffmpeg.output.call_args.kwargs
        assert kwargs['vcodec'] == 'libx264'
        assert kwargs['acodec'] == 'aac'
        assert kwargs['video_bitrate'] == 2_500_000
        assert kwargs['r'] == 30.0
        assert kwargs['vf'] == 'scale=1280:720:force_original_aspect_ratio=decrease'
        assert kwargs['format'] == 'mp4'
        assert kwargs['map_metadata'] == 0
        assert 'crf' not in kwargs

    def test_crf_used_without_bitrate(self, processor, mock_ffmpeg, sample_video, temp_dir):
        output_path = temp_dir / "out.mkv"
        mock_ffmpeg.run.side_effect = _fake_run(output_path)

        processor.process_video(sample_video, output_path, VideoConfig(codec='libx265', output_format='mkv'))

        kwargs = mock_ffmpeg.output.call_args.kwargs
        assert kwargs['crf'] == 23
        assert kwargs['format'] == 'matroska'
        assert kwargs['acodec'] == 'copy'

    def test_single_dimension_scale(self, processor):
        assert processor._build_scale_filter(VideoConfig(width=640)) == 'scale=640:-2'
        assert processor._build_scale_filter(VideoConfig(height=480)) == 'scale=-2:480'
        assert processor._build_scale_filter(
            VideoConfig(width=640, height=480, maintain_aspect_ratio=False)
        ) == 'scale=640:480'
        assert processor._build_scale_filter(VideoConfig()) is None

    def test_trimming_and_gif_drop_audio(self, processor):
        kwargs = processor._build_video_kwargs(
            VideoConfig(start_time=2.0, duration=10.0, framerate=12.0, output_format='gif')
        )
        assert kwargs['ss'] == 2.0
        assert kwargs['t'] == 10.0
        assert 'acodec' not in kwargs
        assert 'an' in kwargs
        assert kwargs['format'] == 'gif'

    def test_process_audio_builds_invocation(self, processor, mock_ffmpeg, sample_audio, temp_dir):
        output_path = temp_dir / "out.mp3"
        mock_ffmpeg.run.side_effect = _fake_run(output_path)
        config = AudioConfig(
            output_format='mp3', bitrate=128_000, sample_rate=44100, channels=2,
            volume=1.5, normalize=True,
        )

        result = processor.process_audio(sample_audio, output_path, config)

        assert result.success
        kwargs = mock_ffmpeg.output.call_args.kwargs
        assert kwargs['audio_bitrate'] == 128_000
        assert kwargs['ar'] == 44100
        assert kwargs['ac'] == 2
        assert kwargs['af'] == 'volume=1.5,loudnorm'
        assert 'vn' in kwargs
        assert kwargs['format'] == 'mp3'

    def test_ffmpeg_error_becomes_processing_error(self, processor, mock_ffmpeg, sample_video, temp_dir):
        output_path = temp_dir / "out.mp4"
        output_path.write_bytes(b"partial")
        mock_ffmpeg.run.side_effect = ffmpeg.Error('ffmpeg', b'', b'Invalid data found when processing input')

        with pytest.raises(VideoProcessingError, match="Invalid data found"):
            processor.process_video(sample_video, output_path, VideoConfig())

        assert not output_path.exists()

    def test_empty_output_is_error(self, processor, mock_ffmpeg, sample_video, temp_dir):
        output_path = temp_dir / "out.mp4"
        mock_ffmpeg.run.side_effect = _fake_run(output_path, content=b"")

        with pytest.raises(VideoProcessingError, match="did not produce valid output"):
            processor.process_video(sample_video, output_path, VideoConfig())

    def test_extract_video_frame(self, processor, mock_ffmpeg, sample_video, temp_dir):
        output_path = temp_dir / "frame.webp"
        mock_ffmpeg.run.side_effect = _fake_run(output_path)

        result = processor.extract_video_frame(sample_video, output_path, timestamp=1.0, width=300, height=300)

        assert result.success
        mock_ffmpeg.input.assert_called_once_with(str(sample_video), ss=1.0)
        kwargs = mock_ffmpeg.output.call_args.kwargs
        assert kwargs['vframes'] == 1
        assert kwargs['vf'] == 'scale=300:300:force_original_aspect_ratio=decrease'

    def test_extract_metadata(self, processor, mock_ffmpeg, sample_video):
        mock_ffmpeg.probe.return_value = {
            'format': {'format_name': 'mov,mp4,m4a', 'duration': '12.5', 'bit_rate': '800000'},
            'streams': [
                {'codec_type': 'video', 'codec_name': 'h264', 'width': 1920, 'height': 1080,
                 'r_frame_rate': '30000/1001', 'bit_rate': '700000'},
                {'codec_type': 'audio', 'codec_name': 'aac', 'sample_rate': '48000', 'channels': 2},
            ],
        }

        info = processor.extract_metadata(sample_video)

        mock_ffmpeg.probe.assert_called_once_with(str(sample_video), cmd='ffprobe')
        assert info['duration'] == 12.5
        assert info['width'] == 1920
        assert info['fps'] == 29.97
        assert info['audio_codec'] == 'aac'
        assert info['sample_rate'] == 48000
        assert info['stream_count'] == 2

    def test_extract_metadata_probe_failure(self, processor, mock_ffmpeg, sample_video):
        mock_ffmpeg.probe.side_effect = ffmpeg.Error('ffprobe', b'', b'moov atom not found')

        with pytest.raises(VideoProcessingError):
            processor.extract_metadata(sample_video)

    def test_frame_rate_parsing(self):
        assert VideoProcessor._parse_frame_rate('25/1') == 25.0
        assert VideoProcessor._parse_frame_rate('0/0') == 0.0
        assert VideoProcessor._parse_frame_rate('garbage') == 0.0
