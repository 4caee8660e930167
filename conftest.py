"""Test-wide structlog setup: library debug and info events stay off the output."""

import logging

import structlog


def pytest_configure(config) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        cache_logger_on_first_use=False,
    )
