from __future__ import annotations

import json
import sys
from typing import Optional

import typer
from loguru import logger

from . import __version__
from .config import TOPIC_FORMAT
from .errors import PartitionSinkError
from .publishers import LogTransport, RoundRobinPublisher
from .task import SinkTask
from .utils import iter_ndjson, record_from_json

app = typer.Typer(help="partition-sink operational CLI")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _resolve_destination(
    destination: Optional[str], project: Optional[str], topic: Optional[str]
) -> str:
    if destination:
        return destination
    if project and topic:
        return TOPIC_FORMAT.format(project=project, topic=topic)
    raise typer.BadParameter("pass --destination, or both --project and --topic")


@app.command("version")
def version():
    typer.echo(__version__)


@app.command("replay")
def replay(
    path: str = typer.Argument(..., help="NDJSON file of records, or '-' for stdin (.gz ok)"),
    destination: Optional[str] = typer.Option(
        None, "--destination", envvar="PARTITION_SINK_DESTINATION", help="Full topic path"
    ),
    project: Optional[str] = typer.Option(None, "--project", envvar="PARTITION_SINK_PROJECT"),
    topic: Optional[str] = typer.Option(None, "--topic", envvar="PARTITION_SINK_TOPIC"),
    min_batch_size: int = typer.Option(
        100, "--min-batch-size", envvar="PARTITION_SINK_MIN_BATCH_SIZE",
        help="Dispatch a partition once this many records are pending",
    ),
    channels: int = typer.Option(
        10, "--channels", envvar="PARTITION_SINK_PUBLISHER_CHANNELS", help="Publisher channels"
    ),
    checkpoint_every: int = typer.Option(
        0, "--checkpoint-every", help="Checkpoint after every N records (0 = only at the end)"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", envvar="PARTITION_SINK_FLUSH_TIMEOUT_SEC", help="Flush timeout in seconds"
    ),
    log_level: str = typer.Option("INFO", "--log-level", envvar="PARTITION_SINK_LOG_LEVEL"),
):
    """Feed NDJSON records through a sink task backed by logging transports."""
    _configure_logging(log_level)
    dest = _resolve_destination(destination, project, topic)
    if channels <= 0:
        raise typer.BadParameter("--channels must be > 0")

    publisher = RoundRobinPublisher([LogTransport(f"ch{i}") for i in range(channels)])
    task = SinkTask(publisher)
    seen: set[int] = set()
    checkpoints = 0
    n = 0
    try:
        task.configure(dest, min_batch_size, flush_timeout=timeout)
        for obj in iter_ndjson(path):
            record = record_from_json(obj)
            task.ingest([record])
            seen.add(record.partition)
            n += 1
            if checkpoint_every and n % checkpoint_every == 0:
                task.checkpoint(seen).raise_for_failure()
                checkpoints += 1
        result = task.checkpoint(seen).raise_for_failure()
        checkpoints += 1
    except PartitionSinkError as e:
        logger.error(f"Replay failed after {n} records: {e}")
        raise typer.Exit(code=1)
    finally:
        task.shutdown()

    typer.echo(
        json.dumps(
            {
                "ingested": n,
                "partitions": sorted(seen),
                "checkpoints": checkpoints,
                "last_flush_ms": round(result.duration_ms, 3),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    app()
