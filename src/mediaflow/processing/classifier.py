"""
Media Type Classifier

Content-based media type detection. The family of a file is decided from
its leading bytes only; the filename and extension are never consulted
because user supplied names are untrusted.
"""

import logging
from pathlib import Path
from typing import FrozenSet, Optional, Union

from mediaflow.processing.config import MediaFamily


# Bytes inspected for signature matching
SNIFF_LENGTH = 4096

DEFAULT_MIME_TYPE = "application/octet-stream"

IMAGE_TYPES: FrozenSet[str] = frozenset({
    'image/jpeg', 'image/png', 'image/gif', 'image/webp',
    'image/bmp', 'image/tiff', 'image/svg+xml', 'image/x-icon',
})

VIDEO_TYPES: FrozenSet[str] = frozenset({
    'video/mp4', 'video/x-msvideo', 'video/quicktime', 'video/x-ms-wmv',
    'video/x-flv', 'video/webm', 'video/x-matroska', 'video/x-m4v',
    'video/3gpp', 'video/ogg',
})

AUDIO_TYPES: FrozenSet[str] = frozenset({
    'audio/mpeg', 'audio/wav', 'audio/flac', 'audio/aac', 'audio/ogg',
    'audio/mp4', 'audio/aiff',
})


class TypeClassifier:
    """
    Maps a file to a media family by sniffing its content.

    Detection works in two steps: the leading bytes are matched against a
    signature table to produce a MIME type, then the MIME type is looked up
    in the closed per-family whitelists. Anything not whitelisted is
    ``MediaFamily.UNKNOWN`` even if it is structurally valid media.
    """

    # Fixed-offset signatures checked in order
    MAGIC_SIGNATURES = (
        (b'\xff\xd8\xff', 'image/jpeg'),
        (b'\x89PNG\r\n\x1a\n', 'image/png'),
        (b'GIF87a', 'image/gif'),
        (b'GIF89a', 'image/gif'),
        (b'II*\x00', 'image/tiff'),
        (b'MM\x00*', 'image/tiff'),
        (b'\x00\x00\x01\x00', 'image/x-icon'),
        (b'BM', 'image/bmp'),
        (b'FLV\x01', 'video/x-flv'),
        (b'\x30\x26\xb2\x75\x8e\x66\xcf\x11', 'video/x-ms-wmv'),
        (b'fLaC', 'audio/flac'),
        (b'ID3', 'audio/mpeg'),
        (b'%PDF', 'application/pdf'),
        (b'PK\x03\x04', 'application/zip'),
    )

    # ISO base media file format brands (bytes 8-12 after the ftyp box type)
    FTYP_BRANDS = {
        b'qt  ': 'video/quicktime',
        b'M4V ': 'video/x-m4v',
        b'M4VH': 'video/x-m4v',
        b'M4VP': 'video/x-m4v',
        b'M4A ': 'audio/mp4',
        b'M4B ': 'audio/mp4',
        b'3gp4': 'video/3gpp',
        b'3gp5': 'video/3gpp',
        b'3gp6': 'video/3gpp',
        b'3ge6': 'video/3gpp',
        b'3gg6': 'video/3gpp',
    }

    # RIFF form types (bytes 8-12)
    RIFF_TYPES = {
        b'WEBP': 'image/webp',
        b'WAVE': 'audio/wav',
        b'AVI ': 'video/x-msvideo',
    }

    def __init__(self):
        self.logger = logging.getLogger("mediaflow.processing.classifier")

    def detect_mime_type(self, file_path: Union[str, Path]) -> str:
        """
        Detect the MIME type of a file from its content.

        Args:
            file_path: Path to the file to inspect

        Returns:
            Detected MIME type, ``application/octet-stream`` when nothing matches

        Raises:
            FileNotFoundError: If the file does not exist
        """
        with open(file_path, 'rb') as f:
            head = f.read(SNIFF_LENGTH)

        mime_type = self.detect_mime_type_from_bytes(head)
        self.logger.debug(f"Detected {mime_type} for {file_path}")
        return mime_type

    def detect_mime_type_from_bytes(self, content: bytes) -> str:
        """Detect a MIME type from the leading bytes of a file."""
        if not content:
            return DEFAULT_MIME_TYPE

        if content[:4] == b'RIFF' and len(content) >= 12:
            riff_type = self.RIFF_TYPES.get(content[8:12])
            if riff_type:
                return riff_type

        if content[:4] == b'FORM' and content[8:12] in (b'AIFF', b'AIFC'):
            return 'audio/aiff'

        if content[4:8] == b'ftyp':
            return self.FTYP_BRANDS.get(content[8:12], 'video/mp4')

        if content[:4] == b'\x1aE\xdf\xa3':
            return 'video/webm' if b'webm' in content[:64] else 'video/x-matroska'

        if content[:4] == b'OggS':
            return 'video/ogg' if b'theora' in content[:128] else 'audio/ogg'

        for signature, mime_type in self.MAGIC_SIGNATURES:
            if content.startswith(signature):
                return mime_type

        frame_type = self._detect_mpeg_audio_frame(content)
        if frame_type:
            return frame_type

        if self._looks_like_svg(content):
            return 'image/svg+xml'

        if self._looks_like_text(content):
            return 'text/plain'

        return DEFAULT_MIME_TYPE

    def classify_mime_type(self, mime_type: str) -> MediaFamily:
        """Map a MIME type onto its family whitelist."""
        if mime_type in IMAGE_TYPES:
            return MediaFamily.IMAGE
        if mime_type in VIDEO_TYPES:
            return MediaFamily.VIDEO
        if mime_type in AUDIO_TYPES:
            return MediaFamily.AUDIO
        return MediaFamily.UNKNOWN

    def classify(self, file_path: Union[str, Path]) -> MediaFamily:
        """
        Determine the media family of a file from its content.

        Returns ``MediaFamily.UNKNOWN`` rather than raising when the content
        does not match any whitelisted type.
        """
        return self.classify_mime_type(self.detect_mime_type(file_path))

    def is_vector(self, file_path: Union[str, Path]) -> bool:
        """Check whether a file is a vector graphic (SVG)."""
        return self.detect_mime_type(file_path) == 'image/svg+xml'

    @staticmethod
    def _detect_mpeg_audio_frame(content: bytes) -> Optional[str]:
        """Recognise a bare MPEG audio or ADTS frame header."""
        if len(content) < 2 or content[0] != 0xFF or (content[1] & 0xE0) != 0xE0:
            return None
        # Layer bits 00 mark ADTS (AAC); anything else is MPEG audio
        if (content[1] & 0x06) == 0:
            return 'audio/aac'
        return 'audio/mpeg'

    @staticmethod
    def _decode_head(content: bytes) -> Optional[str]:
        """Decode leading bytes as UTF-8, tolerating a multi-byte character cut at the end."""
        if b"\x00" in content:
            return None
        for trim in range(4):
            try:
                return content[:len(content) - trim].decode("utf-8-sig")
            except UnicodeDecodeError:
                continue
        return None

    def _looks_like_svg(self, content: bytes) -> bool:
        text = self._decode_head(content)
        if text is None:
            return False
        text = text.lstrip()
        if not text.startswith('<'):
            return False
        return '<svg' in text.lower()

    def _looks_like_text(self, content: bytes) -> bool:
        return self._decode_head(content) is not None
