"""
Command line interface for delimstream.

Splits a file (or stdin) into records on a literal or regex separator and
writes them to stdout, optionally replacing each separator with a fixed
terminator.
"""

import re
from pathlib import Path
from typing import Iterator, Optional

import click

from . import __version__
from .streaming import StreamHandler, wrap
from .streaming.terms import encode_text
from .utils.config import load_config
from .utils.errors import DelimStreamError
from .utils.logging import get_logger, setup_logging

logger = get_logger("delimstream.cli")


def _unescape(text: str) -> str:
    """Interpret backslash escapes while keeping non-ASCII characters intact."""
    return text.encode("latin-1", "backslashreplace").decode("unicode_escape")


def _records(handler: StreamHandler, keep_separator: bool) -> Iterator[bytes]:
    if keep_separator:
        yield from handler
        return

    while True:
        result = handler.find(handler.separator)
        if result is None:
            break
        yield result.prefix
    remainder = handler.buffer.drain()
    if remainder:
        yield remainder


@click.command()
@click.argument("input_file", type=click.File("rb"), default="-")
@click.option("-s", "--separator", default=None,
              help="Record separator; backslash escapes such as \\n are honoured.")
@click.option("-r", "--regex", is_flag=True, help="Treat the separator as a regular expression.")
@click.option("-j", "--join", "joiner", default=None,
              help="Write this after each record instead of the matched separator.")
@click.option("--read-length", type=click.IntRange(min=1), default=None,
              help="Bytes to read from the input at a time.")
@click.option("--max-buffer-size", type=click.IntRange(min=1), default=None,
              help="Fail if a record grows beyond this many bytes.")
@click.option("-c", "--count", is_flag=True, help="Print the number of records only.")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path),
              default=None, help="Configuration file (JSON, YAML, TOML or .env).")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                                case_sensitive=False))
@click.version_option(__version__, prog_name="delimstream")
def main(
    input_file,
    separator: Optional[str],
    regex: bool,
    joiner: Optional[str],
    read_length: Optional[int],
    max_buffer_size: Optional[int],
    count: bool,
    config_path: Optional[Path],
    log_level: Optional[str]
):
    """Split INPUT_FILE (default stdin) into separator-delimited records."""
    try:
        config = load_config([config_path] if config_path else None)
    except DelimStreamError as e:
        raise click.ClickException(e.message) from e

    log_config = config.logging
    setup_logging(
        log_level=log_level or log_config.level,
        log_dir=log_config.directory,
        enable_json=log_config.json_output,
        enable_sentry=log_config.enable_sentry,
        sentry_dsn=log_config.sentry_dsn
    )

    overrides = {"binary": True}
    if read_length is not None:
        overrides["read_length"] = read_length
    if max_buffer_size is not None:
        overrides["max_buffer_size"] = max_buffer_size
    if separator is not None:
        if regex:
            try:
                overrides["separator"] = re.compile(encode_text(separator, config.stream.encoding))
            except re.error as e:
                raise click.BadParameter(str(e), param_hint="--separator") from e
        else:
            overrides["separator"] = _unescape(separator)

    out = click.get_binary_stream("stdout")
    records = 0
    try:
        handler, _ = wrap(input_file, config.stream, **overrides)
        terminator = None
        if joiner is not None:
            terminator = encode_text(_unescape(joiner), handler.encoding)
        for record in _records(handler, keep_separator=terminator is None):
            records += 1
            if count:
                continue
            out.write(record)
            if terminator is not None:
                out.write(terminator)
    except DelimStreamError as e:
        logger.error("split_failed", code=e.code, error=e.message)
        raise click.ClickException(e.message) from e

    if count:
        click.echo(records)
    out.flush()
    logger.info("split_complete", records=records)


if __name__ == "__main__":
    main()
