import click
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from .chainable import (ChainComponent, ColorAmplifier, ColorInverter, ColorSplitter,
                        ImageCropper, ImageReflector, ImageRotator, ImageScaler, ImageSlicer,
                        BitmapOpener, BitmapSaver, BitmapFileError, InvalidArgumentError,
                        ProcessingError, LogManager, build_chain)
from .image_scheduler import ImageTaskScheduler


@dataclass(frozen=True)
class FilterSpec:
    """One catalog entry: a short command name bound to a stage constructor."""
    command: str
    label: str
    factory: Callable[..., ChainComponent]
    arg_types: Tuple[type, ...] = ()

    @property
    def signature(self) -> str:
        return " ".join(f"<{t.__name__}>" for t in self.arg_types)

    @property
    def arity(self) -> int:
        return len(self.arg_types)


FILTER_CATALOG: Dict[str, FilterSpec] = {spec.command: spec for spec in (
    FilterSpec('ca', 'ColorAmplifier', ColorAmplifier, (float, float, float)),
    FilterSpec('ci', 'ColorInverter', ColorInverter),
    FilterSpec('cs', 'ColorSplitter', ColorSplitter),
    FilterSpec('ic', 'ImageCropper', ImageCropper, (int, int, int, int)),
    FilterSpec('iref', 'ImageReflector', ImageReflector),
    FilterSpec('ir', 'ImageRotator', ImageRotator, (int,)),
    FilterSpec('is', 'ImageScaler', ImageScaler, (int,)),
    FilterSpec('isl', 'ImageSlicer', ImageSlicer, (int, int)),
)}


def available_filters() -> str:
    """Help text listing every known filter command and its arguments."""
    lines = ["Known filters:"]
    for spec in sorted(FILTER_CATALOG.values(), key=lambda s: s.label):
        lines.append(f"{spec.label}:\t{spec.command} {spec.signature}".rstrip())
    return "\n".join(lines)


def parse_commands(tokens: Sequence[str]) -> List[ChainComponent]:
    """
    Build the ordered list of stages described by command tokens.

    Args:
        tokens: Command names each followed by their arguments, e.g. ``['ir', '1', 'ci']``

    Returns:
        Constructed filter and separator stages, in order

    Raises:
        InvalidArgumentError: For unknown commands, missing or malformed arguments,
            or parameters the stage constructor rejects
    """
    stages: List[ChainComponent] = []
    index = 0
    while index < len(tokens):
        command = tokens[index]
        index += 1

        spec = FILTER_CATALOG.get(command)
        if spec is None:
            raise InvalidArgumentError(f'Unknown filter name: "{command}"\n{available_filters()}')

        remaining = list(tokens[index:])
        if len(remaining) < spec.arity:
            raise InvalidArgumentError(
                f"{spec.label} requires {spec.signature}\n"
                f"Args Found ({len(remaining)}): {' '.join(remaining)}"
            )

        args = []
        for arg_type, token in zip(spec.arg_types, tokens[index:index + spec.arity]):
            try:
                args.append(arg_type(token))
            except ValueError:
                raise InvalidArgumentError(
                    f"{spec.label} requires {spec.signature}, "
                    f"'{token}' is not a valid {arg_type.__name__}"
                ) from None
        index += spec.arity

        stages.append(spec.factory(*args))
    return stages


def _list_filters(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo(available_filters())
    ctx.exit()


@click.command(context_settings={'ignore_unknown_options': True})
@click.option('--list-filters', is_flag=True, expose_value=False, is_eager=True, callback=_list_filters,
              help='List the available filter commands and exit.')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=1,
              help='Number of workers used to process the images of a stage. Default is 1.')
@click.option('-e', '--execution-mode', type=click.Choice(['threading', 'multiprocessing']), default='threading',
              help='Execution mode for parallel processing. Default is threading.')
@click.option('--log-dir', type=click.Path(file_okay=False), default='logs',
              help='Directory for the run log file. Default is ./logs.')
@click.option('--no-log-file', is_flag=True, default=False, help='Do not write a run log file.')
@click.option('--verbose', '-v', is_flag=True, default=False, help='Report every stage on the console.')
@click.argument('input_path', metavar='INPUT', type=click.Path(dir_okay=False))
@click.argument('output_path', metavar='OUTPUT', type=click.Path(dir_okay=False))
@click.argument('commands', metavar='[FILTER ARGS...]...', nargs=-1, type=click.UNPROCESSED)
def main(workers, execution_mode, log_dir, no_log_file, verbose, input_path, output_path, commands):
    """Apply a pipeline of filters to a 24-bit bitmap.

    Reads INPUT, runs each FILTER with its ARGS in order and writes OUTPUT.
    When the pipeline produces several images they are saved as OUTPUT with an
    index before the extension (out0.bmp, out1.bmp, ...).
    """
    LogManager.set_console_level(logging.INFO if verbose else logging.WARNING)

    try:
        stages = parse_commands(commands)
    except InvalidArgumentError as e:
        raise click.UsageError(str(e))

    if not no_log_file:
        LogManager.initialize(log_dir)
        if verbose:
            click.echo(f'Logging initialized: {LogManager.get_log_file_path()}')

    scheduler = ImageTaskScheduler(max_workers=workers, execution_mode=execution_mode) if workers > 1 else None

    try:
        opener = BitmapOpener(input_path)
        saver = BitmapSaver(output_path)
        head = build_chain([opener, *stages, saver], scheduler)

        images = head.execute()

        if verbose:
            click.echo(f'Applied {len(stages)} filter(s), produced {len(images)} image(s)')
        for target in saver.written:
            click.echo(f'Saved {target}')

        LogManager.log_info('CLI', 'Processing completed successfully')

    except ProcessingError as e:
        LogManager.log_error('CLI', f'Processing error: {str(e)}', e)
        if isinstance(e, BitmapFileError):
            click.echo(f'Error: {e.message}: {e.filename}', err=True)
        else:
            click.echo(f'Error: {str(e)}', err=True)
        click.get_current_context().exit(1)

    finally:
        LogManager.cleanup()


if __name__ == '__main__':
    main()
