from __future__ import annotations

from typing import BinaryIO, Optional

import click

from reclog.config import RecordLogConfig
from reclog.core.codec import is_short_value
from reclog.core.errors import DecodeError
from reclog.core.index import build_index, read_record_at
from reclog.core.models import FramingMode, Record
from reclog.core.reader import RecordReader
from reclog.monitoring.metrics import generate_latest
from reclog.utils.logging import configure_logging, get_logger, log_context

FRAMING_CHOICES = [mode.value for mode in FramingMode]


def _format_value(value: bytes) -> str:
    if is_short_value(value):
        return value.decode("ascii")
    text = value.decode("utf-8", "backslashreplace").replace("\n", "\\n")
    return f"+{len(value)} {text}"


def _echo_record(offset: int, record: Record) -> None:
    header = f"@{offset}"
    if record.name:
        header += f" {record.name}"
    if record.timestamp is not None:
        header += f" {record.timestamp.isoformat()}"
    click.echo(header)
    for entry in record:
        click.echo(f"  {entry.key}: {_format_value(entry.value)}")


def _open_reader(ctx: click.Context, f: BinaryIO, start_offset: int = 0) -> RecordReader:
    config: RecordLogConfig = ctx.obj
    return RecordReader.from_config(f, config, start_offset=start_offset)


def _fail(exc: DecodeError) -> None:
    click.echo(f"error: {exc}", err=True)
    raise SystemExit(1)


def _echo_metrics() -> None:
    click.echo(generate_latest().decode("utf-8"), nl=False)


@click.group()
@click.option(
    "--framing",
    type=click.Choice(FRAMING_CHOICES),
    default=None,
    help="Framing mode (default: $RECLOG_FRAMING or size-prefix)",
)
@click.option(
    "--timestamps/--no-timestamps",
    default=None,
    help="Frame headers carry millisecond timestamps",
)
@click.option("--log-level", default=None, help="Log level (default: $LOG_LEVEL)")
@click.option("--json-logs/--console-logs", default=None, help="Log rendering")
@click.version_option(package_name="datavision-reclog")
@click.pass_context
def cli(
    ctx: click.Context,
    framing: Optional[str],
    timestamps: Optional[bool],
    log_level: Optional[str],
    json_logs: Optional[bool],
) -> None:
    """Inspect reclog record files."""
    settings = RecordLogConfig.from_env().model_dump()
    overrides = {
        "framing": framing,
        "with_timestamps": timestamps,
        "log_level": log_level,
        "json_logs": json_logs,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    config = RecordLogConfig(**settings)

    configure_logging(level=config.log_level, json_output=config.json_logs)
    ctx.obj = config


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.pass_context
def cat(ctx: click.Context, file: BinaryIO) -> None:
    """Print every record with its offset."""
    with log_context(path=file.name):
        try:
            for offset, record in _open_reader(ctx, file):
                _echo_record(offset, record)
        except DecodeError as exc:
            _fail(exc)


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.pass_context
def index(ctx: click.Context, file: BinaryIO) -> None:
    """Print OFFSET LENGTH [NAME] for every record."""
    config: RecordLogConfig = ctx.obj
    with log_context(path=file.name):
        try:
            entries = build_index(
                file, framing=config.framing, with_timestamps=config.with_timestamps
            )
        except DecodeError as exc:
            _fail(exc)
            return
    for entry in entries:
        line = f"{entry.offset} {entry.length}"
        if entry.name:
            line += f" {entry.name}"
        click.echo(line)


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.option(
    "--metrics",
    "show_metrics",
    is_flag=True,
    help="Print Prometheus metrics (text exposition format) after reading",
)
@click.pass_context
def verify(ctx: click.Context, file: BinaryIO, show_metrics: bool) -> None:
    """Read the whole file; exit 1 on the first malformed record."""
    logger = get_logger(__name__)
    count = 0
    with log_context(path=file.name):
        reader = _open_reader(ctx, file)
        try:
            while reader.read_next():
                count += 1
        except DecodeError as exc:
            if show_metrics:
                _echo_metrics()
            _fail(exc)
        logger.info("file_verified", records=count, size=reader.next_offset)
    click.echo(f"ok: {count} records, {reader.next_offset} bytes")
    if show_metrics:
        _echo_metrics()


@cli.command()
@click.argument("file", type=click.File("rb"))
@click.argument("offset", type=click.IntRange(min=0))
@click.pass_context
def get(ctx: click.Context, file: BinaryIO, offset: int) -> None:
    """Print the record starting at byte OFFSET."""
    config: RecordLogConfig = ctx.obj
    try:
        record = read_record_at(
            file,
            offset,
            framing=config.framing,
            with_timestamps=config.with_timestamps,
        )
    except DecodeError as exc:
        _fail(exc)
        return
    if record is None:
        click.echo(f"error: no record at offset {offset}", err=True)
        raise SystemExit(1)
    _echo_record(offset, record)


if __name__ == "__main__":
    cli()
