"""
Tests for content-based media type detection.
"""

import pytest
from PIL import Image

from mediaflow.processing.classifier import TypeClassifier
from mediaflow.processing.config import MediaFamily


class TestTypeClassifier:

    @pytest.fixture
    def classifier(self):
        return TypeClassifier()

    @pytest.mark.parametrize("content, expected", [
        (b'\xff\xd8\xff\xe0\x00\x10JFIF', 'image/jpeg'),
        (b'\x89PNG\r\n\x1a\n\x00\x00', 'image/png'),
        (b'GIF89a\x01\x00', 'image/gif'),
        (b'RIFF\x00\x00\x00\x00WEBPVP8 ', 'image/webp'),
        (b'BM\x00\x00', 'image/bmp'),
        (b'II*\x00\x08\x00', 'image/tiff'),
        (b'\x00\x00\x00\x18ftypisom', 'video/mp4'),
        (b'\x00\x00\x00\x14ftypqt  ', 'video/quicktime'),
        (b'\x00\x00\x00\x20ftypM4A ', 'audio/mp4'),
        (b'RIFF\x00\x00\x00\x00AVI LIST', 'video/x-msvideo'),
        (b'\x1aE\xdf\xa3\x9fB\x86\x81\x01B\x82\x84webm', 'video/webm'),
        (b'\x1aE\xdf\xa3\xa3B\x86\x81\x01B\x82\x88matroska', 'video/x-matroska'),
        (b'FLV\x01\x05', 'video/x-flv'),
        (b'OggS\x00\x02' + b'\x00' * 22 + b'\x80theora', 'video/ogg'),
        (b'OggS\x00\x02' + b'\x00' * 22 + b'\x01vorbis', 'audio/ogg'),
        (b'ID3\x03\x00', 'audio/mpeg'),
        (b'\xff\xfb\x90\x00', 'audio/mpeg'),
        (b'\xff\xf1\x50\x80', 'audio/aac'),
        (b'fLaC\x00\x00', 'audio/flac'),
        (b'RIFF\x00\x00\x00\x00WAVEfmt ', 'audio/wav'),
        (b'FORM\x00\x00\x00\x00AIFFCOMM', 'audio/aiff'),
        (b'%PDF-1.7', 'application/pdf'),
        (b'PK\x03\x04', 'application/zip'),
        (b'<svg xmlns="http://www.w3.org/2000/svg"></svg>', 'image/svg+xml'),
        (b'plain words', 'text/plain'),
        (b'\x00\x01\x02\x03\xfe', 'application/octet-stream'),
        (b'', 'application/octet-stream'),
    ])
    def test_detect_from_bytes(self, classifier, content, expected):
        assert classifier.detect_mime_type_from_bytes(content) == expected

    def test_extension_is_ignored(self, classifier, temp_dir):
        disguised = temp_dir / "file.txt"
        Image.new('RGB', (10, 10), color='blue').save(disguised, 'PNG')

        assert classifier.detect_mime_type(disguised) == 'image/png'
        assert classifier.classify(disguised) == MediaFamily.IMAGE

    def test_classify_sample_files(self, classifier, sample_jpeg, sample_video, sample_audio, sample_svg):
        assert classifier.classify(sample_jpeg) == MediaFamily.IMAGE
        assert classifier.classify(sample_video) == MediaFamily.VIDEO
        assert classifier.classify(sample_audio) == MediaFamily.AUDIO
        assert classifier.classify(sample_svg) == MediaFamily.IMAGE

    def test_non_media_is_unknown(self, classifier, sample_text):
        assert classifier.classify(sample_text) == MediaFamily.UNKNOWN
        assert classifier.classify_mime_type('application/pdf') == MediaFamily.UNKNOWN

    def test_is_vector(self, classifier, sample_svg, sample_png):
        assert classifier.is_vector(sample_svg) is True
        assert classifier.is_vector(sample_png) is False

    def test_svg_with_xml_prolog(self, classifier):
        content = b'<?xml version="1.0"?>\n<!-- logo -->\n<svg width="1"></svg>'
        assert classifier.detect_mime_type_from_bytes(content) == 'image/svg+xml'

    def test_truncated_utf8_head_still_text(self, classifier, temp_dir):
        path = temp_dir / "long.txt"
        # 4095 ASCII bytes followed by a two-byte character split by the read limit
        path.write_bytes(b'a' * 4095 + 'é'.encode('utf-8'))
        assert classifier.detect_mime_type(path) == 'text/plain'

    def test_missing_file_raises(self, classifier, temp_dir):
        with pytest.raises(FileNotFoundError):
            classifier.detect_mime_type(temp_dir / "missing.png")
