"""
Processing Exceptions

Exception classes raised by the media engines. The orchestrator converts
every one of these into a failure result at its boundary.
"""


class ProcessingError(Exception):
    """Base exception for all media processing errors."""
    pass


class ImageProcessingError(ProcessingError):
    """Exception raised during raster image processing operations."""
    pass


class VideoProcessingError(ProcessingError):
    """Exception raised during video or audio processing operations."""
    pass


class VectorRasterizationError(ProcessingError):
    """Exception raised when a vector graphic cannot be rasterized."""
    pass


class FFmpegNotFoundError(ProcessingError):
    """Exception raised when FFmpeg is not found or not accessible."""
    
    def __init__(self, message=None):
        if message is None:
            message = (
                "FFmpeg not found. Video and audio processing requires FFmpeg to be installed. "
                "Please install FFmpeg and ensure it's available in your system PATH. "
                "Visit https://ffmpeg.org/download.html for installation instructions."
            )
        super().__init__(message)


class EngineUnavailableError(ProcessingError):
    """Exception raised when no engine is configured for a media family."""
    
    def __init__(self, engine_name: str):
        super().__init__(f"No {engine_name} engine is configured")
        self.engine_name = engine_name


class UnsupportedFormatError(ProcessingError):
    """Exception raised when attempting to produce an unsupported output format."""
    
    def __init__(self, format_name, supported_formats):
        message = (
            f"Unsupported format: {format_name}. "
            f"Supported formats: {', '.join(sorted(supported_formats))}"
        )
        super().__init__(message)
        self.format_name = format_name
        self.supported_formats = supported_formats
