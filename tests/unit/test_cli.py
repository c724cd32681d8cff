"""
Unit tests for the partition-sink CLI.
"""

import base64
import json
import sys

import pytest
from loguru import logger
from typer.testing import CliRunner

from partition_sink import __version__
from partition_sink.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def _write_ndjson(path, rows):
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return str(path)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_replay_summary(tmp_path):
    rows = [{"partition": i % 2, "key": f"k{i}", "payload": f"v{i}"} for i in range(9)]
    rows.append({"partition": 4, "payload_b64": base64.b64encode(b"\x00\xff").decode()})
    path = _write_ndjson(tmp_path / "records.ndjson", rows)

    result = runner.invoke(
        app,
        [
            "replay", path,
            "--project", "p", "--topic", "t",
            "--min-batch-size", "2",
            "--channels", "3",
            "--checkpoint-every", "4",
            "--log-level", "ERROR",
        ],
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.stdout)
    assert summary["ingested"] == 10
    assert summary["partitions"] == [0, 1, 4]
    assert summary["checkpoints"] == 3


def test_replay_requires_destination(tmp_path):
    path = _write_ndjson(tmp_path / "r.ndjson", [{"partition": 0, "payload": "x"}])
    result = runner.invoke(app, ["replay", path, "--log-level", "ERROR"])
    assert result.exit_code != 0


def test_replay_bad_record_exits_nonzero(tmp_path):
    path = _write_ndjson(tmp_path / "r.ndjson", [{"partition": 0, "payload": 5}])
    result = runner.invoke(
        app, ["replay", path, "--destination", "projects/p/topics/t", "--log-level", "ERROR"]
    )
    assert result.exit_code == 1
