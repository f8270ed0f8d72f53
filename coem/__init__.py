"""Coem interpreter package."""

from __future__ import annotations

from typing import Any


__all__ = [
    "RunArtifacts",
    "dispatch_service",
    "format_coem_error",
    "format_source",
    "parse_source",
    "run",
    "run_file",
    "run_source",
]


def dispatch_service(*args: Any, **kwargs: Any):
    from coem.service import dispatch as _dispatch

    return _dispatch(*args, **kwargs)


def run(*args: Any, **kwargs: Any):
    from coem.main import run as _run

    return _run(*args, **kwargs)


def run_source(*args: Any, **kwargs: Any):
    from coem.main import run_source as _run_source

    return _run_source(*args, **kwargs)


def run_file(*args: Any, **kwargs: Any):
    from coem.main import run_file as _run_file

    return _run_file(*args, **kwargs)


def parse_source(*args: Any, **kwargs: Any):
    from coem.main import parse_source as _parse_source

    return _parse_source(*args, **kwargs)


def format_source(*args: Any, **kwargs: Any):
    from coem.main import format_source as _format_source

    return _format_source(*args, **kwargs)


def format_coem_error(*args: Any, **kwargs: Any):
    from coem.errors import format_coem_error as _format_coem_error

    return _format_coem_error(*args, **kwargs)


def __getattr__(name: str):
    if name == "RunArtifacts":
        from coem.main import RunArtifacts

        return RunArtifacts
    raise AttributeError(name)
