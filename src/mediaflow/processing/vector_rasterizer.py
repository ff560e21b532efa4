"""
Vector Rasterizer

Renders SVG documents with the ``rsvg-convert`` tool from librsvg. The tool
only writes PNG for raster output, so other formats are re-encoded through
Pillow afterwards.
"""

import logging
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image

from mediaflow.processing.engines import PathLike, VectorRasterizer
from mediaflow.processing.exceptions import UnsupportedFormatError, VectorRasterizationError
from mediaflow.processing.result import ProcessingResult


class RsvgRasterizer(VectorRasterizer):
    """SVG rasterizer backed by the rsvg-convert executable."""

    SUPPORTED_FORMATS = {'png', 'jpeg', 'jpg', 'webp', 'tiff', 'bmp', 'gif'}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger("mediaflow.processing.vector")

        self.rsvg_path = self.config.get('rsvg_convert_path', 'rsvg-convert')
        self.timeout = self.config.get('rsvg_timeout', 60)

    def is_available(self) -> bool:
        """Check if the rsvg-convert executable can be run."""
        try:
            result = subprocess.run(
                [self.rsvg_path, '--version'],
                capture_output=True,
                text=True,
                timeout=10
            )
            return result.returncode == 0
        except (subprocess.SubprocessError, FileNotFoundError):
            return False

    def rasterize(
        self,
        input_path: PathLike,
        output_path: PathLike,
        width: Optional[int],
        height: Optional[int],
        output_format: str,
        quality: Optional[int]
    ) -> ProcessingResult:
        """
        Render an SVG file into a raster image.

        Raises:
            UnsupportedFormatError: If the target format is not a raster format
            VectorRasterizationError: If rendering or re-encoding fails
        """
        start_time = time.time()
        output_path = Path(output_path)
        target_format = output_format.lower()
        if target_format == 'jpg':
            target_format = 'jpeg'

        if target_format not in self.SUPPORTED_FORMATS:
            raise UnsupportedFormatError(target_format, self.SUPPORTED_FORMATS)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Rasterizing {input_path} to {target_format} at {width}x{height}")

        if target_format == 'png':
            self._render_png(input_path, output_path, width, height)
        else:
            with tempfile.TemporaryDirectory() as tmp_dir:
                png_path = Path(tmp_dir) / 'render.png'
                self._render_png(input_path, png_path, width, height)
                self._reencode(png_path, output_path, target_format, quality)

        return ProcessingResult.succeeded(
            str(output_path),
            metadata={'engine': 'rsvg', 'format': target_format, 'width': width, 'height': height},
            processing_time=time.time() - start_time
        )

    def _render_png(
        self,
        input_path: PathLike,
        output_path: Path,
        width: Optional[int],
        height: Optional[int]
    ) -> None:
        command: List[str] = [self.rsvg_path, '--format', 'png', '--output', str(output_path)]
        if width:
            command += ['--width', str(width)]
        if height:
            command += ['--height', str(height)]
        if width and height:
            command.append('--keep-aspect-ratio')
        command.append(str(input_path))

        try:
            result = subprocess.run(command, capture_output=True, text=True, timeout=self.timeout)
        except (subprocess.SubprocessError, FileNotFoundError) as e:
            raise VectorRasterizationError(f"Failed to run {self.rsvg_path}: {e}") from e

        if result.returncode != 0:
            raise VectorRasterizationError(
                f"rsvg-convert exited with {result.returncode}: {result.stderr.strip()}"
            )

    def _reencode(self, png_path: Path, output_path: Path, target_format: str, quality: Optional[int]) -> None:
        save_kwargs: Dict[str, Any] = {}
        if target_format in ('jpeg', 'webp'):
            save_kwargs['quality'] = max(1, min(100, quality if quality is not None else 85))

        try:
            with Image.open(png_path) as img:
                if target_format == 'jpeg':
                    background = Image.new('RGB', img.size, (255, 255, 255))
                    rgba = img.convert('RGBA')
                    background.paste(rgba, mask=rgba.split()[-1])
                    img = background
                img.save(output_path, format=target_format.upper(), **save_kwargs)
        except Exception as e:
            raise VectorRasterizationError(f"Failed to encode rasterized image: {e}") from e
