"""
Shared Test Configuration and Fixtures

Sample media files (real Pillow images, signature-only video/audio files),
in-memory fakes for the engines and job infrastructure, and a wired
processing service built from them.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from mediaflow.jobs.queue import InMemoryMessageQueue
from mediaflow.jobs.service import AsyncJobService
from mediaflow.jobs.store import InMemoryJobStatusStore
from mediaflow.processing.engines import AudiovisualEngine, RasterEngine, VectorRasterizer
from mediaflow.processing.orchestrator import MediaProcessingService
from mediaflow.processing.result import ProcessingResult


MP4_HEADER = b'\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2mp41'
MP3_HEADER = b'ID3\x03\x00\x00\x00\x00\x00\x21'
SVG_DOCUMENT = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50">'
    '<rect width="100" height="50" fill="blue"/></svg>\n'
)


# Sample files
@pytest.fixture
def temp_dir():
    """Create temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_jpeg(temp_dir):
    """800x600 red JPEG."""
    path = temp_dir / "photo.jpg"
    Image.new('RGB', (800, 600), color='red').save(path, 'JPEG', quality=95)
    return path


@pytest.fixture
def sample_png(temp_dir):
    """400x300 semi-transparent PNG."""
    path = temp_dir / "overlay.png"
    Image.new('RGBA', (400, 300), color=(0, 255, 0, 128)).save(path, 'PNG')
    return path


@pytest.fixture
def sample_video(temp_dir):
    """File carrying an MP4 ftyp header (not decodable, classifies as video)."""
    path = temp_dir / "clip.mp4"
    path.write_bytes(MP4_HEADER + b'\x00' * 64)
    return path


@pytest.fixture
def sample_audio(temp_dir):
    """File carrying an ID3 header (classifies as audio)."""
    path = temp_dir / "song.mp3"
    path.write_bytes(MP3_HEADER + b'\x00' * 64)
    return path


@pytest.fixture
def sample_svg(temp_dir):
    path = temp_dir / "logo.svg"
    path.write_text(SVG_DOCUMENT, encoding='utf-8')
    return path


@pytest.fixture
def sample_text(temp_dir):
    path = temp_dir / "notes.txt"
    path.write_text("just some notes\n", encoding='utf-8')
    return path


# Engine fakes
class FakeRasterEngine(RasterEngine):
    """Records calls and writes a placeholder artifact."""

    def __init__(self, fail_widths=(), error: Optional[Exception] = None):
        self.calls: List[Dict[str, Any]] = []
        self.fail_widths = set(fail_widths)
        self.error = error

    def process_image(self, input_path, output_path, config):
        self.calls.append({'input': str(input_path), 'output': str(output_path), 'config': config})
        if self.error is not None:
            raise self.error
        if config.width in self.fail_widths:
            return ProcessingResult.failed(f"cannot render {config.width}px")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b'image')
        return ProcessingResult.succeeded(str(output_path), metadata={'engine': 'fake-raster'})

    def extract_metadata(self, file_path):
        return {'width': 800, 'height': 600, 'format': 'JPEG'}


class FakeAudiovisualEngine(AudiovisualEngine):
    """Records calls and writes placeholder artifacts."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls: List[Dict[str, Any]] = []
        self.error = error

    def _produce(self, kind, input_path, output_path, **details):
        self.calls.append({'kind': kind, 'input': str(input_path), 'output': str(output_path), **details})
        if self.error is not None:
            raise self.error
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b'media')
        return ProcessingResult.succeeded(str(output_path), metadata={'engine': 'fake-av'})

    def process_video(self, input_path, output_path, config):
        return self._produce('video', input_path, output_path, config=config)

    def process_audio(self, input_path, output_path, config):
        return self._produce('audio', input_path, output_path, config=config)

    def extract_video_frame(self, input_path, output_path, timestamp=0.0, width=None, height=None):
        return self._produce('frame', input_path, output_path, timestamp=timestamp, width=width, height=height)

    def extract_metadata(self, file_path):
        return {'duration': 12.5, 'video_codec': 'h264'}


class FakeVectorRasterizer(VectorRasterizer):

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []

    def rasterize(self, input_path, output_path, width, height, output_format, quality):
        self.calls.append({
            'input': str(input_path), 'output': str(output_path),
            'width': width, 'height': height, 'format': output_format, 'quality': quality,
        })
        Path(output_path).write_bytes(b'raster')
        return ProcessingResult.succeeded(str(output_path), metadata={'engine': 'fake-vector'})


@pytest.fixture
def raster_engine():
    return FakeRasterEngine()


@pytest.fixture
def av_engine():
    return FakeAudiovisualEngine()


@pytest.fixture
def vector_rasterizer():
    return FakeVectorRasterizer()


# Job infrastructure
@pytest.fixture
def message_queue():
    return InMemoryMessageQueue()


@pytest.fixture
def status_store():
    return InMemoryJobStatusStore()


@pytest.fixture
def job_service(message_queue, status_store):
    return AsyncJobService(message_queue, status_store)


@pytest.fixture
def service(raster_engine, av_engine, vector_rasterizer, job_service):
    """Processing service wired to fakes."""
    return MediaProcessingService(
        raster_engine=raster_engine,
        av_engine=av_engine,
        job_service=job_service,
        vector_rasterizer=vector_rasterizer,
    )
