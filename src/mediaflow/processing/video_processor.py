"""
Video Processing Module

FFmpeg-based audiovisual engine: video and audio transcoding, single frame
extraction and ffprobe metadata, driven by VideoConfig/AudioConfig.
"""

import logging
import subprocess
import time
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, List, Optional

import ffmpeg

from mediaflow.processing.config import AudioConfig, VideoConfig
from mediaflow.processing.engines import AudiovisualEngine, PathLike
from mediaflow.processing.exceptions import FFmpegNotFoundError, VideoProcessingError
from mediaflow.processing.result import ProcessingResult


class VideoProcessor(AudiovisualEngine):
    """
    Audiovisual engine built on FFmpeg through ffmpeg-python.

    Builds one FFmpeg invocation per call from the config fields. Bitrates
    are passed through in bits per second.
    """

    # Output format -> FFmpeg muxer name
    MUXERS = {
        'mp4': 'mp4',
        'm4v': 'mp4',
        'mov': 'mov',
        'mkv': 'matroska',
        'webm': 'webm',
        'avi': 'avi',
        'flv': 'flv',
        'gif': 'gif',
        'ogv': 'ogg',
        'mp3': 'mp3',
        'aac': 'adts',
        'm4a': 'ipod',
        'ogg': 'ogg',
        'opus': 'opus',
        'flac': 'flac',
        'wav': 'wav',
        'aiff': 'aiff',
    }

    # Codecs that accept a CRF quality setting
    CRF_CODECS = {'libx264', 'libx265', 'libvpx-vp9'}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the video processor.

        Args:
            config: Engine options (ffmpeg_path, ffprobe_path, video_quality_crf,
                preserve_original_metadata)

        Raises:
            FFmpegNotFoundError: If FFmpeg is not available
        """
        self.config = config or {}
        self.logger = logging.getLogger("mediaflow.processing.video")

        self.ffmpeg_path = self.config.get('ffmpeg_path', 'ffmpeg')
        self.ffprobe_path = self.config.get('ffprobe_path', 'ffprobe')

        if not self._check_ffmpeg_available():
            raise FFmpegNotFoundError()

        self.default_crf = self.config.get('video_quality_crf', 23)
        self.preserve_metadata = self.config.get('preserve_original_metadata', True)

    def process_video(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: VideoConfig
    ) -> ProcessingResult:
        """
        Transcode a video according to a VideoConfig.

        Raises:
            VideoProcessingError: If FFmpeg fails
        """
        start_time = time.time()
        input_path = Path(input_path)
        output_path = Path(output_path)

        self.logger.info(f"Transcoding video {input_path} -> {output_path}")

        output_kwargs = self._build_video_kwargs(config)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            stream = ffmpeg.output(ffmpeg.input(str(input_path)), str(output_path), **output_kwargs)
            self._run_ffmpeg(stream, input_path, output_path)
        except VideoProcessingError:
            raise
        except Exception as e:
            self.logger.error(f"Video transcoding failed: {e}")
            raise VideoProcessingError(f"Failed to transcode video: {e}") from e

        self.logger.info(f"Successfully transcoded video to {output_path}")
        return ProcessingResult.succeeded(
            str(output_path),
            metadata={'engine': 'ffmpeg', 'ffmpeg_options': output_kwargs},
            processing_time=time.time() - start_time
        )

    def process_audio(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: AudioConfig
    ) -> ProcessingResult:
        """
        Transcode an audio file according to an AudioConfig.

        Raises:
            VideoProcessingError: If FFmpeg fails
        """
        start_time = time.time()
        input_path = Path(input_path)
        output_path = Path(output_path)

        self.logger.info(f"Transcoding audio {input_path} -> {output_path}")

        output_kwargs = self._build_audio_kwargs(config)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            stream = ffmpeg.output(ffmpeg.input(str(input_path)), str(output_path), **output_kwargs)
            self._run_ffmpeg(stream, input_path, output_path)
        except VideoProcessingError:
            raise
        except Exception as e:
            self.logger.error(f"Audio transcoding failed: {e}")
            raise VideoProcessingError(f"Failed to transcode audio: {e}") from e

        self.logger.info(f"Successfully transcoded audio to {output_path}")
        return ProcessingResult.succeeded(
            str(output_path),
            metadata={'engine': 'ffmpeg', 'ffmpeg_options': output_kwargs},
            processing_time=time.time() - start_time
        )

    def extract_video_frame(
        self,
        input_path: PathLike,
        output_path: PathLike,
        timestamp: float = 0.0,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> ProcessingResult:
        """
        Extract a single frame from a video as an image.

        Args:
            input_path: Path to input video file
            output_path: Path for the image file (format follows the suffix)
            timestamp: Offset in seconds to take the frame from
            width: Optional bounding box width
            height: Optional bounding box height

        Raises:
            VideoProcessingError: If frame extraction fails
        """
        start_time = time.time()
        input_path = Path(input_path)
        output_path = Path(output_path)

        self.logger.info(f"Extracting frame from {input_path} at {timestamp}s")

        output_kwargs: Dict[str, Any] = {'vframes': 1}
        if width and height:
            output_kwargs['vf'] = f"scale={width}:{height}:force_original_aspect_ratio=decrease"

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            input_stream = ffmpeg.input(str(input_path), ss=timestamp)
            stream = ffmpeg.output(input_stream, str(output_path), **output_kwargs)
            self._run_ffmpeg(stream, input_path, output_path)
        except VideoProcessingError:
            raise
        except Exception as e:
            self.logger.error(f"Frame extraction failed: {e}")
            raise VideoProcessingError(f"Failed to extract video frame: {e}") from e

        self.logger.info(f"Successfully extracted frame: {output_path}")
        return ProcessingResult.succeeded(
            str(output_path),
            metadata={'engine': 'ffmpeg', 'timestamp': timestamp},
            processing_time=time.time() - start_time
        )

    def extract_metadata(self, file_path: PathLike) -> Dict[str, Any]:
        """
        Get detailed information about a video or audio file.

        Raises:
            VideoProcessingError: If the file cannot be probed
        """
        try:
            probe = ffmpeg.probe(str(file_path), cmd=self.ffprobe_path)
        except Exception as e:
            self.logger.error(f"Failed to probe media: {e}")
            raise VideoProcessingError(f"Failed to read media information: {e}") from e

        streams = probe.get('streams', [])
        video_stream = next((s for s in streams if s.get('codec_type') == 'video'), None)
        audio_stream = next((s for s in streams if s.get('codec_type') == 'audio'), None)
        format_info = probe.get('format', {})

        info: Dict[str, Any] = {
            'container': format_info.get('format_name'),
            'duration': float(format_info.get('duration', 0) or 0),
            'bit_rate': int(format_info.get('bit_rate', 0) or 0),
            'stream_count': len(streams),
        }

        if video_stream:
            info.update({
                'video_codec': video_stream.get('codec_name'),
                'width': int(video_stream.get('width', 0)),
                'height': int(video_stream.get('height', 0)),
                'fps': self._parse_frame_rate(video_stream.get('r_frame_rate', '0/1')),
                'video_bit_rate': int(video_stream.get('bit_rate', 0) or 0),
            })

        if audio_stream:
            info.update({
                'audio_codec': audio_stream.get('codec_name'),
                'sample_rate': int(audio_stream.get('sample_rate', 0) or 0),
                'channels': int(audio_stream.get('channels', 0) or 0),
                'audio_bit_rate': int(audio_stream.get('bit_rate', 0) or 0),
            })

        return info

    def _check_ffmpeg_available(self) -> bool:
        """
        Check if the FFmpeg executable is available.

        Returns:
            True if FFmpeg is available, False otherwise
        """
        try:
            result = subprocess.run(
                [self.ffmpeg_path, '-version'],
                capture_output=True,
                text=True,
                timeout=10
            )
            return result.returncode == 0
        except (subprocess.SubprocessError, FileNotFoundError):
            return False

    def _build_video_kwargs(self, config: VideoConfig) -> Dict[str, Any]:
        """
        Build FFmpeg output keyword arguments for a video transcode.

        Args:
            config: Video processing configuration

        Returns:
            Dictionary of FFmpeg output arguments
        """
        kwargs: Dict[str, Any] = {}

        if config.start_time is not None:
            kwargs['ss'] = config.start_time
        if config.duration is not None:
            kwargs['t'] = config.duration

        if config.codec:
            kwargs['vcodec'] = config.codec

        scale_filter = self._build_scale_filter(config)
        if scale_filter:
            kwargs['vf'] = scale_filter

        if config.bitrate:
            kwargs['video_bitrate'] = config.bitrate
        elif config.codec in self.CRF_CODECS:
            kwargs['crf'] = max(0, min(51, self.default_crf))

        if config.framerate:
            kwargs['r'] = config.framerate

        # Copy the source audio stream unless a codec is requested
        kwargs['acodec'] = config.audio_codec or 'copy'
        if config.output_format and config.output_format.lower() == 'gif':
            kwargs.pop('acodec')
            kwargs['an'] = None

        if config.audio_bitrate:
            kwargs['audio_bitrate'] = config.audio_bitrate
        if config.audio_sample_rate:
            kwargs['ar'] = config.audio_sample_rate

        self._apply_common_kwargs(kwargs, config.output_format)
        return kwargs

    def _build_audio_kwargs(self, config: AudioConfig) -> Dict[str, Any]:
        """
        Build FFmpeg output keyword arguments for an audio transcode.

        Args:
            config: Audio processing configuration

        Returns:
            Dictionary of FFmpeg output arguments
        """
        kwargs: Dict[str, Any] = {}

        if config.start_time is not None:
            kwargs['ss'] = config.start_time
        if config.duration is not None:
            kwargs['t'] = config.duration

        if config.codec:
            kwargs['acodec'] = config.codec
        if config.bitrate:
            kwargs['audio_bitrate'] = config.bitrate
        if config.sample_rate:
            kwargs['ar'] = config.sample_rate
        if config.channels:
            kwargs['ac'] = config.channels

        audio_filters: List[str] = []
        if config.volume is not None:
            audio_filters.append(f"volume={config.volume}")
        if config.normalize:
            audio_filters.append('loudnorm')
        if audio_filters:
            kwargs['af'] = ','.join(audio_filters)

        # No video
        kwargs['vn'] = None

        self._apply_common_kwargs(kwargs, config.output_format)
        return kwargs

    def _apply_common_kwargs(self, kwargs: Dict[str, Any], output_format: Optional[str]) -> None:
        if output_format:
            muxer = self.MUXERS.get(output_format.lower())
            if muxer:
                kwargs['format'] = muxer

        if self.preserve_metadata:
            kwargs['map_metadata'] = 0

        kwargs['loglevel'] = 'error'

    @staticmethod
    def _build_scale_filter(config: VideoConfig) -> Optional[str]:
        """Build the scale filter expression for the configured dimensions."""
        width, height = config.width, config.height

        if not width and not height:
            return None

        if config.maintain_aspect_ratio:
            if width and height:
                return f"scale={width}:{height}:force_original_aspect_ratio=decrease"
            if width:
                # -2 keeps the other side even, which most encoders require
                return f"scale={width}:-2"
            return f"scale=-2:{height}"

        return f"scale={width or -1}:{height or -1}"

    @staticmethod
    def _parse_frame_rate(rate: str) -> float:
        """Parse an ffprobe rational frame rate such as '30000/1001'."""
        try:
            return round(float(Fraction(rate)), 3)
        except (ValueError, ZeroDivisionError):
            return 0.0

    def _run_ffmpeg(self, output_stream, input_path: Path, output_path: Path) -> None:
        """
        Run FFmpeg command with proper error handling.

        Args:
            output_stream: FFmpeg output stream
            input_path: Input file path for error reporting
            output_path: Output file path for cleanup on error
        """
        try:
            ffmpeg.run(output_stream, cmd=self.ffmpeg_path, overwrite_output=True, quiet=True)
        except ffmpeg.Error as e:
            # Clean up failed output file
            if output_path.exists():
                try:
                    output_path.unlink()
                except OSError:
                    pass

            # Extract error message from FFmpeg stderr
            error_msg = "Unknown FFmpeg error"
            if getattr(e, 'stderr', None):
                error_msg = e.stderr.decode('utf-8', errors='replace').strip()

            self.logger.error(f"FFmpeg failed for {input_path}: {error_msg}")
            raise VideoProcessingError(f"FFmpeg processing failed: {error_msg}") from e

        # Verify output file was created
        if not output_path.exists() or output_path.stat().st_size == 0:
            raise VideoProcessingError(f"FFmpeg did not produce valid output file: {output_path}")
