"""
Media Commands

Process, convert and inspect individual media files.
"""

from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import typer

from mediaflow.cli.commands.options import ConfigOption, DebugOption, VerboseOption
from mediaflow.cli.config_utils import build_cli_args, load_config_from_cli
from mediaflow.cli.utils import console, exit_for_result, print_header, print_mapping, print_result
from mediaflow.processing.classifier import TypeClassifier
from mediaflow.processing.config import (
    AudioConfig,
    GenericConfig,
    ImageConfig,
    MediaFamily,
    ProcessingConfig,
    VideoConfig,
    derive_config,
)
from mediaflow.processing.factory import ProcessorFactory
from mediaflow.processing.presets import get_preset


def _drop_unsupported(config_cls, overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the overrides the config family defines."""
    ignored = sorted(key for key in overrides if key not in config_cls.model_fields)
    if ignored:
        console.print(
            f"[yellow]Ignoring options not used for {config_cls.__name__}: {', '.join(ignored)}[/yellow]"
        )
    return {key: value for key, value in overrides.items() if key not in ignored}


def build_processing_config(
    classifier: TypeClassifier,
    input_path: Path,
    preset: Optional[str],
    overrides: Dict[str, Any]
) -> ProcessingConfig:
    """
    Build the config for a process run from a preset and option overrides.

    Without a preset the config family follows the detected input family.
    Options the chosen family does not define (``quality`` for video, for
    instance) are ignored with a warning.

    Raises:
        ValueError: For an unknown preset or overrides invalid for the family
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}

    if preset:
        family, _, name = preset.partition('/')
        base = get_preset(family, name)
        if base is None:
            raise ValueError(f"Unknown preset: {preset} (expected FAMILY/NAME)")
        return derive_config(base, _drop_unsupported(type(base), overrides))

    family = classifier.classify(input_path) if input_path.exists() else MediaFamily.UNKNOWN
    match family:
        case MediaFamily.IMAGE:
            return ImageConfig(**_drop_unsupported(ImageConfig, overrides))
        case MediaFamily.VIDEO:
            return VideoConfig(**_drop_unsupported(VideoConfig, overrides))
        case MediaFamily.AUDIO:
            return AudioConfig(**_drop_unsupported(AudioConfig, overrides))
        case _:
            return GenericConfig(output_format=overrides.get('output_format'))


def process(
    input_path: Annotated[Path, typer.Argument(help="File to process")],
    output_path: Annotated[Path, typer.Argument(help="Where to write the result")],
    preset: Annotated[Optional[str], typer.Option("--preset", "-p", help="Preset as FAMILY/NAME")] = None,
    output_format: Annotated[Optional[str], typer.Option("--format", "-f", help="Output format")] = None,
    width: Annotated[Optional[int], typer.Option("--width", help="Target width in pixels")] = None,
    height: Annotated[Optional[int], typer.Option("--height", help="Target height in pixels")] = None,
    quality: Annotated[Optional[int], typer.Option("--quality", "-q", help="Image quality (0-100)")] = None,
    run_async: Annotated[bool, typer.Option("--async", help="Queue the job for a worker")] = False,
    delay: Annotated[Optional[float], typer.Option("--delay", help="Seconds before a queued job may run")] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = None,
    debug: DebugOption = None,
):
    """
    Process a media file according to its detected type.

    [bold cyan]Examples:[/bold cyan]

    • Resize an image: [green]mediaflow process photo.jpg out.webp --width 800[/green]
    • Use a preset: [green]mediaflow process clip.mov out.mp4 --preset video/web_hd[/green]
    • Queue for a worker: [green]mediaflow process clip.mov out.mp4 --async[/green]
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose, debug))
    service = ProcessorFactory(app_config).create_processing_service()

    overrides = {
        'output_format': output_format,
        'width': width,
        'height': height,
        'quality': quality,
    }
    try:
        processing_config = build_processing_config(service.classifier, input_path, preset, overrides)
    except ValueError as e:
        console.print(f"[red]Invalid processing options: {e}[/red]")
        raise typer.Exit(1)

    if app_config.verbose:
        print_header("Processing", f"{input_path} → {output_path}")

    result = service.process(
        input_path,
        output_path,
        processing_config,
        async_=run_async,
        delay_seconds=delay
    )
    print_result(result)
    exit_for_result(result)


def thumbnails(
    input_path: Annotated[Path, typer.Argument(help="Image or video file")],
    sizes: Annotated[Optional[List[int]], typer.Option("--size", "-s", help="Thumbnail size (repeatable)")] = None,
    output_format: Annotated[Optional[str], typer.Option("--format", "-f", help="Thumbnail format")] = None,
    quality: Annotated[Optional[int], typer.Option("--quality", "-q", help="Thumbnail quality")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", "-o", help="Directory for thumbnails")] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = None,
    debug: DebugOption = None,
):
    """
    Generate thumbnails for an image or video.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose, debug))
    service = ProcessorFactory(app_config).create_processing_service()

    result = service.generate_thumbnails(
        input_path,
        sizes=sizes or None,
        output_format=output_format,
        quality=quality,
        output_dir=output_dir
    )
    print_result(result, title="Thumbnails")
    exit_for_result(result)


def metadata(
    input_path: Annotated[Path, typer.Argument(help="File to inspect")],
    config: ConfigOption = None,
    verbose: VerboseOption = None,
    debug: DebugOption = None,
):
    """
    Show file and media metadata.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose, debug))
    service = ProcessorFactory(app_config).create_processing_service()

    info = service.extract_metadata(input_path)
    print_mapping(f"Metadata: {input_path.name}", info)
    if 'error' in info:
        raise typer.Exit(1)


def convert(
    input_path: Annotated[Path, typer.Argument(help="File to convert")],
    output_path: Annotated[Path, typer.Argument(help="Where to write the result")],
    target_format: Annotated[str, typer.Argument(help="Target format, e.g. webp, mp4, mp3")],
    quality: Annotated[Optional[int], typer.Option("--quality", "-q", help="Image quality (0-100)")] = None,
    bitrate: Annotated[Optional[int], typer.Option("--bitrate", "-b", help="Audio bitrate in bits/s")] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = None,
    debug: DebugOption = None,
):
    """
    Convert a file to another format with default settings.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose, debug))
    service = ProcessorFactory(app_config).create_processing_service()

    options = {key: value for key, value in {'quality': quality, 'bitrate': bitrate}.items() if value is not None}
    result = service.convert_format(input_path, output_path, target_format, options)
    print_result(result, title="Conversion")
    exit_for_result(result)
