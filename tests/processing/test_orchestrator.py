"""
Tests for MediaProcessingService routing, thumbnails, metadata and format
conversion. Engines are in-memory fakes from conftest.
"""

from pathlib import Path

import pytest

from mediaflow.processing.config import AudioConfig, GenericConfig, ImageConfig, VideoConfig
from mediaflow.processing.exceptions import ImageProcessingError
from mediaflow.processing.image_processor import ImageProcessor
from mediaflow.processing.orchestrator import MediaProcessingService


class TestProcessRouting:
    """process() dispatch by detected family."""

    def test_image_routed_to_raster_engine(self, service, raster_engine, sample_jpeg, temp_dir):
        output_path = temp_dir / "out.webp"

        result = service.process(sample_jpeg, output_path, ImageConfig(width=100))

        assert result.success
        assert result.output_path == str(output_path)
        assert len(raster_engine.calls) == 1
        assert raster_engine.calls[0]['config'].width == 100

    def test_video_routed_to_av_engine(self, service, av_engine, sample_video, temp_dir):
        result = service.process(sample_video, temp_dir / "out.webm", VideoConfig(codec='libvpx-vp9'))

        assert result.success
        assert av_engine.calls[0]['kind'] == 'video'
        assert av_engine.calls[0]['config'].codec == 'libvpx-vp9'

    def test_audio_routed_to_av_engine(self, service, av_engine, sample_audio, temp_dir):
        result = service.process(sample_audio, temp_dir / "out.ogg", AudioConfig(bitrate=96_000))

        assert result.success
        assert av_engine.calls[0]['kind'] == 'audio'

    def test_routing_uses_content_not_extension(self, service, raster_engine, temp_dir, sample_png):
        disguised = temp_dir / "definitely_a_video.mp4"
        disguised.write_bytes(sample_png.read_bytes())

        result = service.process(disguised, temp_dir / "out.png", ImageConfig())

        assert result.success
        assert len(raster_engine.calls) == 1

    def test_mismatched_config_replaced_by_family_default(self, service, raster_engine, sample_jpeg, temp_dir):
        result = service.process(sample_jpeg, temp_dir / "out.jpg", VideoConfig(codec='libx264'))

        assert result.success
        used = raster_engine.calls[0]['config']
        assert used.family == 'image'
        assert used == ImageConfig()

    def test_generic_config_accepted(self, service, av_engine, sample_audio, temp_dir):
        result = service.process(sample_audio, temp_dir / "out.wav", GenericConfig(output_format='wav'))

        assert result.success
        assert av_engine.calls[0]['config'] == AudioConfig()

    def test_missing_input(self, service, raster_engine, temp_dir):
        result = service.process(temp_dir / "missing.jpg", temp_dir / "out.jpg", ImageConfig())

        assert not result.success
        assert "does not exist" in result.error_message
        assert raster_engine.calls == []

    def test_unsupported_media_type(self, service, sample_text, temp_dir):
        result = service.process(sample_text, temp_dir / "out.bin", GenericConfig())

        assert not result.success
        assert result.error_message == "Unsupported media type: text/plain"
        assert result.get_metadata('mime_type') == 'text/plain'

    def test_engine_fault_becomes_failure(self, service, raster_engine, sample_jpeg, temp_dir):
        raster_engine.error = ImageProcessingError("decoder exploded")

        result = service.process(sample_jpeg, temp_dir / "out.png", ImageConfig())

        assert not result.success
        assert "decoder exploded" in result.error_message
        assert result.get_metadata('exception') == 'ImageProcessingError'

    def test_missing_av_engine_is_structured_failure(self, raster_engine, sample_video, temp_dir):
        service = MediaProcessingService(raster_engine=raster_engine, av_engine=None)

        result = service.process(sample_video, temp_dir / "out.mp4", VideoConfig())

        assert not result.success
        assert "No audiovisual engine is configured" in result.error_message
        assert result.get_metadata('exception') == 'EngineUnavailableError'


class TestAsyncProcessing:

    def test_async_returns_job_id_without_output(self, service, message_queue, status_store, sample_jpeg, temp_dir):
        result = service.process(sample_jpeg, temp_dir / "out.png", ImageConfig(width=10), async_=True)

        assert result.success
        assert result.job_id is not None
        assert result.output_path is None
        assert result.get_metadata('status') == 'queued'
        assert len(message_queue) == 1
        assert status_store.get(result.job_id)['status'] == 'queued'

    def test_async_delay_is_forwarded(self, service, message_queue, sample_jpeg, temp_dir):
        result = service.process(sample_jpeg, temp_dir / "out.png", ImageConfig(), async_=True, delay_seconds=60)

        assert result.success
        assert message_queue.receive(timeout=0) is None

    def test_async_checks_input_exists(self, service, message_queue, temp_dir):
        result = service.process(temp_dir / "missing.png", temp_dir / "out.png", ImageConfig(), async_=True)

        assert not result.success
        assert len(message_queue) == 0

    def test_async_without_job_service(self, raster_engine, sample_jpeg, temp_dir):
        service = MediaProcessingService(raster_engine=raster_engine, av_engine=None)

        result = service.process(sample_jpeg, temp_dir / "out.png", ImageConfig(), async_=True)

        assert not result.success
        assert "not configured" in result.error_message


class TestVectorInputs:

    def test_svg_to_raster_uses_rasterizer(self, service, vector_rasterizer, raster_engine, sample_svg, temp_dir):
        output_path = temp_dir / "logo.png"

        result = service.process(sample_svg, output_path, ImageConfig(width=64, height=64, output_format='png'))

        assert result.success
        assert raster_engine.calls == []
        assert vector_rasterizer.calls[0]['format'] == 'png'
        assert vector_rasterizer.calls[0]['width'] == 64

    def test_svg_target_inferred_from_output_suffix(self, service, vector_rasterizer, sample_svg, temp_dir):
        service.process(sample_svg, temp_dir / "logo.jpeg", ImageConfig())

        assert vector_rasterizer.calls[0]['format'] == 'jpeg'

    def test_svg_to_svg_passes_through(self, sample_svg, temp_dir, vector_rasterizer):
        service = MediaProcessingService(
            raster_engine=ImageProcessor(), av_engine=None, vector_rasterizer=vector_rasterizer
        )
        output_path = temp_dir / "copy.svg"

        result = service.process(sample_svg, output_path, ImageConfig())

        assert result.success
        assert vector_rasterizer.calls == []
        assert output_path.read_bytes() == sample_svg.read_bytes()

    def test_svg_without_rasterizer(self, raster_engine, sample_svg, temp_dir):
        service = MediaProcessingService(raster_engine=raster_engine, av_engine=None)

        result = service.process(sample_svg, temp_dir / "logo.png", ImageConfig(output_format='png'))

        assert not result.success
        assert "No vector engine is configured" in result.error_message


class TestGenerateThumbnails:

    def test_all_sizes(self, service, sample_jpeg, temp_dir):
        result = service.generate_thumbnails(sample_jpeg, sizes=[150, 300, 600], output_format='webp')

        assert result.success
        thumbnails = result.get_metadata('thumbnails')
        assert set(thumbnails) == {150, 300, 600}
        assert thumbnails[300] == str(temp_dir / "photo_thumb_300.webp")
        assert result.get_metadata('generated_count') == 3
        assert result.get_metadata('errors') == []
        assert result.output_path == thumbnails[150]
        assert result.processed_files == [thumbnails[150], thumbnails[300], thumbnails[600]]

    def test_image_thumbnail_config(self, service, raster_engine, sample_jpeg):
        service.generate_thumbnails(sample_jpeg, sizes=[200], output_format='jpeg', quality=70)

        config = raster_engine.calls[0]['config']
        assert (config.width, config.height) == (200, 200)
        assert config.quality == 70
        assert config.output_format == 'jpeg'
        assert config.maintain_aspect_ratio is True

    def test_defaults_from_service(self, raster_engine, sample_jpeg):
        service = MediaProcessingService(
            raster_engine=raster_engine, av_engine=None,
            thumbnail_sizes=[64], thumbnail_format='png', thumbnail_quality=50,
        )

        result = service.generate_thumbnails(sample_jpeg)

        assert list(result.get_metadata('thumbnails')) == [64]
        assert result.output_path.endswith("photo_thumb_64.png")

    def test_partial_failure_is_success(self, service, raster_engine, sample_jpeg):
        raster_engine.fail_widths = {300}

        result = service.generate_thumbnails(sample_jpeg, sizes=[150, 300, 600])

        assert result.success
        assert set(result.get_metadata('thumbnails')) == {150, 600}
        errors = result.get_metadata('errors')
        assert len(errors) == 1
        assert "300px" in errors[0]

    def test_one_of_two_sizes_generated(self, service, raster_engine, sample_jpeg):
        raster_engine.fail_widths = {300}

        result = service.generate_thumbnails(sample_jpeg, sizes=[150, 300])

        assert result.success
        assert result.get_metadata('generated_count') == 1
        assert result.processed_files == [result.output_path]
        assert len(result.get_metadata('errors')) == 1

    def test_all_sizes_failing(self, service, raster_engine, sample_jpeg):
        raster_engine.error = ImageProcessingError("no decoder")

        result = service.generate_thumbnails(sample_jpeg, sizes=[150, 300])

        assert not result.success
        assert result.error_message == 'Failed to generate any thumbnails'
        assert len(result.get_metadata('errors')) == 2

    def test_video_thumbnails_use_frame_extraction(self, service, av_engine, sample_video):
        result = service.generate_thumbnails(sample_video, sizes=[320], output_format='jpeg')

        assert result.success
        call = av_engine.calls[0]
        assert call['kind'] == 'frame'
        assert call['timestamp'] == 1.0
        assert (call['width'], call['height']) == (320, 320)

    def test_output_dir(self, service, sample_jpeg, temp_dir):
        target = temp_dir / "thumbs"

        result = service.generate_thumbnails(sample_jpeg, sizes=[100], output_dir=target)

        assert Path(result.output_path).parent == target

    def test_audio_not_supported(self, service, av_engine, sample_audio):
        sizes = [150, 300]

        result = service.generate_thumbnails(sample_audio, sizes=sizes)

        assert not result.success
        assert result.error_message == 'Failed to generate any thumbnails'
        errors = result.get_metadata('errors')
        assert len(errors) == len(sizes)
        assert all(e == "Thumbnail generation not supported for type: audio/mpeg" for e in errors)
        assert av_engine.calls == []

    def test_no_sizes(self, service, sample_jpeg):
        result = service.generate_thumbnails(sample_jpeg, sizes=[])

        assert not result.success

    def test_missing_input(self, service, temp_dir):
        result = service.generate_thumbnails(temp_dir / "missing.jpg")

        assert not result.success


class TestExtractMetadata:

    def test_image_metadata_merged(self, service, sample_jpeg):
        info = service.extract_metadata(sample_jpeg)

        assert info['mime_type'] == 'image/jpeg'
        assert info['file_size'] == sample_jpeg.stat().st_size
        assert info['file_path'] == str(sample_jpeg)
        assert 'modified_time' in info
        assert info['width'] == 800

    def test_video_metadata_merged(self, service, sample_video):
        info = service.extract_metadata(sample_video)

        assert info['mime_type'] == 'video/mp4'
        assert info['duration'] == 12.5

    def test_svg_marked_vector(self, service, raster_engine, sample_svg):
        info = service.extract_metadata(sample_svg)

        assert info['vector'] is True
        assert 'width' not in info

    def test_non_media_has_basic_facts_only(self, service, sample_text):
        info = service.extract_metadata(sample_text)

        assert info['mime_type'] == 'text/plain'
        assert 'error' not in info

    def test_missing_file_reports_error(self, service, temp_dir):
        missing = temp_dir / "missing.jpg"

        info = service.extract_metadata(missing)

        assert info['file_path'] == str(missing)
        assert 'error' in info


class TestConvertFormat:

    def test_image_defaults(self, service, raster_engine, sample_jpeg, temp_dir):
        result = service.convert_format(sample_jpeg, temp_dir / "out.webp", 'webp')

        assert result.success
        config = raster_engine.calls[0]['config']
        assert config.quality == 85
        assert config.output_format == 'webp'

    def test_image_quality_option(self, service, raster_engine, sample_jpeg, temp_dir):
        service.convert_format(sample_jpeg, temp_dir / "out.jpg", 'jpeg', {'quality': 40})

        assert raster_engine.calls[0]['config'].quality == 40

    def test_audio_bitrate(self, service, av_engine, sample_audio, temp_dir):
        service.convert_format(sample_audio, temp_dir / "out.ogg", 'ogg')
        service.convert_format(sample_audio, temp_dir / "out2.ogg", 'ogg', {'bitrate': '96000'})

        assert av_engine.calls[0]['config'].bitrate == 192000
        assert av_engine.calls[1]['config'].bitrate == 96000

    def test_video(self, service, av_engine, sample_video, temp_dir):
        service.convert_format(sample_video, temp_dir / "out.webm", 'webm')

        assert av_engine.calls[0]['config'].output_format == 'webm'

    def test_unsupported_type(self, service, sample_text, temp_dir):
        result = service.convert_format(sample_text, temp_dir / "out.pdf", 'pdf')

        assert not result.success
        assert result.error_message == "Format conversion not supported for type: text/plain"

    def test_invalid_quality_is_failure(self, service, sample_jpeg, temp_dir):
        result = service.convert_format(sample_jpeg, temp_dir / "out.jpg", 'jpeg', {'quality': 150})

        assert not result.success
        assert result.get_metadata('exception') == 'ValidationError'
