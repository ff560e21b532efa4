"""
Image Processing Module

PIL/Pillow-based raster engine: resizing, format conversion, quality
adjustment and EXIF metadata preservation driven by an ImageConfig.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from PIL import Image, ImageColor, ImageOps

from mediaflow.processing.config import ImageConfig
from mediaflow.processing.engines import PathLike, RasterEngine
from mediaflow.processing.exceptions import ImageProcessingError, UnsupportedFormatError
from mediaflow.processing.result import ProcessingResult


class ImageProcessor(RasterEngine):
    """
    Raster image engine built on PIL/Pillow.

    Applies an ImageConfig to a single image: optional resize, colour mode
    preparation for the target format, and encoder options. EXIF metadata is
    carried over unless the config asks for it to be stripped.
    """

    # Supported output formats
    SUPPORTED_FORMATS = {
        'jpeg', 'jpg', 'png', 'webp', 'bmp', 'tiff', 'gif', 'ico'
    }

    # Formats that support quality settings
    QUALITY_FORMATS = {'jpeg', 'jpg', 'webp'}

    # Formats that support EXIF data
    EXIF_FORMATS = {'jpeg', 'jpg', 'tiff', 'webp'}

    # Vector formats passed through untouched
    VECTOR_FORMATS = {'svg'}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the image processor.

        Args:
            config: Engine options (image_quality, preserve_original_metadata)
        """
        self.config = config or {}
        self.logger = logging.getLogger("mediaflow.processing.image")

        self.default_quality = self.config.get('image_quality', 85)
        self.preserve_exif = self.config.get('preserve_original_metadata', True)

    def process_image(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: ImageConfig
    ) -> ProcessingResult:
        """
        Transform an image according to an ImageConfig.

        Args:
            input_path: Path to input image file
            output_path: Path for output image file
            config: Image processing configuration

        Returns:
            Success result carrying the output dimensions and format

        Raises:
            ImageProcessingError: If the image cannot be read or written
            UnsupportedFormatError: If the target format is not supported
        """
        start_time = time.time()
        input_path = Path(input_path)
        output_path = Path(output_path)

        target_format = self._resolve_target_format(config.output_format, output_path)

        if target_format in self.VECTOR_FORMATS:
            return self._passthrough_vector(input_path, output_path, start_time)

        if target_format is not None and target_format not in self.SUPPORTED_FORMATS:
            raise UnsupportedFormatError(target_format, self.SUPPORTED_FORMATS)

        self.logger.info(f"Processing image {input_path} -> {output_path}")

        try:
            with Image.open(input_path) as img:
                source_format = (img.format or 'png').lower()
                if target_format is None:
                    target_format = self._normalize_format(source_format)

                exif_data = self._extract_exif(img)
                processed = ImageOps.exif_transpose(img)
                original_size = processed.size

                if config.has_resize:
                    processed = self._resize(processed, config)

                processed = self._prepare_image_for_format(processed, target_format, config)
                save_kwargs = self._build_save_kwargs(target_format, config, exif_data)

                output_path.parent.mkdir(parents=True, exist_ok=True)
                processed.save(output_path, format=target_format.upper(), **save_kwargs)

                metadata = {
                    'engine': 'pillow',
                    'source_format': source_format,
                    'format': target_format,
                    'original_size': list(original_size),
                    'width': processed.width,
                    'height': processed.height,
                }
        except Exception as e:
            self.logger.error(f"Image processing failed: {e}")
            raise ImageProcessingError(f"Failed to process image: {e}") from e

        processing_time = time.time() - start_time
        self.logger.info(
            f"Successfully processed image from {original_size} to {processed.size}, "
            f"saved as {output_path}"
        )
        return ProcessingResult.succeeded(
            str(output_path),
            metadata=metadata,
            processing_time=processing_time
        )

    def extract_metadata(self, file_path: PathLike) -> Dict[str, Any]:
        """
        Get detailed information about an image file.

        Args:
            file_path: Path to image file

        Returns:
            Dictionary with image information

        Raises:
            ImageProcessingError: If image cannot be read
        """
        try:
            with Image.open(file_path) as img:
                exif = img.getexif()
                return {
                    'format': img.format,
                    'mode': img.mode,
                    'width': img.width,
                    'height': img.height,
                    'has_transparency': img.mode in ('RGBA', 'LA') or 'transparency' in img.info,
                    'has_exif': bool(exif),
                    'exif_tags': len(exif),
                    'frames': getattr(img, 'n_frames', 1),
                }
        except Exception as e:
            self.logger.error(f"Failed to get image info: {e}")
            raise ImageProcessingError(f"Failed to read image information: {e}") from e

    def _resolve_target_format(self, requested: Optional[str], output_path: Path) -> Optional[str]:
        """Pick the output format from the config, falling back to the output suffix."""
        if requested:
            return self._normalize_format(requested)
        suffix = output_path.suffix.lower().lstrip('.')
        if suffix:
            return self._normalize_format(suffix)
        return None

    @staticmethod
    def _normalize_format(fmt: str) -> str:
        fmt = fmt.lower().lstrip('.')
        # Normalize jpg to jpeg and tif to tiff for PIL compatibility
        return {'jpg': 'jpeg', 'tif': 'tiff'}.get(fmt, fmt)

    def _passthrough_vector(self, input_path: Path, output_path: Path, start_time: float) -> ProcessingResult:
        """Copy a vector document unchanged (no raster pipeline applies)."""
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            if input_path.resolve() != output_path.resolve():
                shutil.copyfile(input_path, output_path)
        except OSError as e:
            self.logger.error(f"Vector passthrough failed: {e}")
            raise ImageProcessingError(f"Failed to copy vector image: {e}") from e

        self.logger.info(f"Copied vector image to {output_path}")
        return ProcessingResult.succeeded(
            str(output_path),
            metadata={'engine': 'pillow', 'format': 'svg', 'passthrough': True},
            processing_time=time.time() - start_time
        )

    def _resize(self, img: Image.Image, config: ImageConfig) -> Image.Image:
        """Resize to the configured box, keeping aspect ratio when requested."""
        width, height = self._target_size(img.size, config)
        if config.maintain_aspect_ratio and config.width and config.height:
            return ImageOps.contain(img, (width, height), Image.Resampling.LANCZOS)
        return img.resize((width, height), Image.Resampling.LANCZOS)

    @staticmethod
    def _target_size(size: Tuple[int, int], config: ImageConfig) -> Tuple[int, int]:
        src_width, src_height = size
        width, height = config.width, config.height

        if width and height:
            return width, height
        if not config.maintain_aspect_ratio:
            return width or src_width, height or src_height
        if width:
            return width, max(1, round(src_height * width / src_width))
        return max(1, round(src_width * height / src_height)), height

    def _prepare_image_for_format(
        self,
        img: Image.Image,
        target_format: str,
        config: ImageConfig
    ) -> Image.Image:
        """
        Prepare image for specific output format (handle color modes).

        Args:
            img: PIL Image object
            target_format: Target format
            config: Image configuration (transparency and background options)

        Returns:
            Processed PIL Image object
        """
        has_alpha = img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info)
        flatten = has_alpha and (target_format in ('jpeg', 'bmp') or not config.preserve_transparency)

        if flatten:
            # Composite onto a solid background
            background_rgb = ImageColor.getrgb(config.background_color or 'white')[:3]
            background = Image.new('RGB', img.size, background_rgb)
            rgba = img.convert('RGBA')
            background.paste(rgba, mask=rgba.split()[-1])
            return background

        if target_format == 'jpeg':
            if img.mode != 'RGB':
                img = img.convert('RGB')

        elif target_format == 'png':
            # PNG supports transparency
            if img.mode not in ['RGB', 'RGBA', 'L', 'LA', 'P']:
                img = img.convert('RGBA' if has_alpha else 'RGB')

        elif target_format == 'webp':
            # WebP supports both RGB and RGBA
            if img.mode not in ['RGB', 'RGBA']:
                img = img.convert('RGBA' if has_alpha else 'RGB')

        elif target_format == 'gif':
            if img.mode not in ['P', 'L']:
                img = img.convert('P', palette=Image.Palette.ADAPTIVE)

        else:
            # For other formats, convert to RGB as safe default
            if img.mode not in ['RGB', 'RGBA', 'L']:
                img = img.convert('RGBA' if has_alpha else 'RGB')

        return img

    def _build_save_kwargs(
        self,
        target_format: str,
        config: ImageConfig,
        exif_data: Optional[bytes]
    ) -> Dict[str, Any]:
        save_kwargs: Dict[str, Any] = {}

        if target_format in self.QUALITY_FORMATS:
            quality = config.quality if config.quality is not None else self.default_quality
            save_kwargs['quality'] = max(1, min(100, quality))
            save_kwargs['optimize'] = True

        if target_format == 'jpeg' and config.progressive:
            save_kwargs['progressive'] = True

        if not config.strip_metadata and self.preserve_exif:
            if exif_data and target_format in self.EXIF_FORMATS:
                save_kwargs['exif'] = exif_data

        return save_kwargs

    def _extract_exif(self, img: Image.Image) -> Optional[bytes]:
        """
        Extract raw EXIF data from image.

        Args:
            img: PIL Image object

        Returns:
            EXIF data as bytes or None if not available
        """
        exif = img.info.get('exif')
        if exif:
            return exif
        try:
            exif_obj = img.getexif()
        except Exception as e:
            self.logger.debug(f"Could not extract EXIF data: {e}")
            return None
        return exif_obj.tobytes() if exif_obj else None
