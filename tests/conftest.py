"""Shared pytest fixtures for the mdoc test suite.

This module provides reusable fixtures for:
- Sample ``.m`` sources under ``tests/fixtures/project``
- Parsing fixture files by relative path
- Copying the sample project into a temporary folder for site builds
- Restoring root logging after CLI runs reconfigure it
- Grouping captured log records by their ``operation`` field
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, cast

import pytest

from mdoc.parser import parse_source

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from _pytest.logging import LogCaptureFixture

    from mdoc.models import DeclarationUnit

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"


@pytest.fixture
def project_dir() -> Path:
    """Return the read-only sample project folder."""
    return PROJECT


@pytest.fixture
def read_fixture() -> Callable[[str], str]:
    """Return a reader for files relative to the sample project.

    Returns
    -------
    Callable[[str], str]
        Function mapping a relative path such as ``"types/Counter.m"`` to the
        file's text.
    """

    def _read(relative: str) -> str:
        return (PROJECT / relative).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def parse_fixture(read_fixture: Callable[[str], str]) -> Callable[[str], DeclarationUnit]:
    """Return a parser for files relative to the sample project."""

    def _parse(relative: str) -> DeclarationUnit:
        return parse_source(read_fixture(relative), Path(relative).stem)

    return _parse


@pytest.fixture
def project_copy(tmp_path: Path) -> Path:
    """Copy the sample project into ``tmp_path / "project"``.

    Returns
    -------
    Path
        Writable copy; builds write their output below it.
    """
    target = tmp_path / "project"
    shutil.copytree(PROJECT, target)
    return target


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Put back root handlers replaced by ``setup_logging``."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    try:
        yield
    finally:
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
        for handler in handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(level)


@pytest.fixture
def caplog_records(caplog: LogCaptureFixture) -> Callable[[], dict[str, list[logging.LogRecord]]]:
    """Capture mdoc logs grouped by operation name.

    Parameters
    ----------
    caplog : LogCaptureFixture
        Pytest fixture for capturing log records.

    Returns
    -------
    Callable[[], dict[str, list[logging.LogRecord]]]
        Function returning the records captured so far, keyed by the
        ``operation`` field of each record.
    """
    caplog.set_level(logging.DEBUG, logger="mdoc")

    def _collect_records() -> dict[str, list[logging.LogRecord]]:
        records_by_op: dict[str, list[logging.LogRecord]] = {}
        for record in caplog.records:
            record_dict = cast("dict[str, object]", record.__dict__)
            op_obj = record_dict.get("operation", "unknown")
            op = op_obj if isinstance(op_obj, str) else "unknown"
            records_by_op.setdefault(op, []).append(record)
        return records_by_op

    return _collect_records
