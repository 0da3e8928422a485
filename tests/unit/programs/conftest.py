"""Shared helpers for the end-to-end C program suite."""

import logging

import pytest

from minicc.run import run
from minicc.run_types import RunResult

logger = logging.getLogger(__name__)

TARGETS = ["i386", "amd64", "arm64"]


def run_c(source: str, **kwargs) -> RunResult:
    """Compile and run *source*, logging the pipeline report on the way."""
    result = run(source, **kwargs)
    logger.info("%s", result.stats.report())
    return result


@pytest.fixture
def run_program():
    return run_c


@pytest.fixture(params=TARGETS)
def target(request) -> str:
    return request.param
