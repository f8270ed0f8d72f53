"""Machine-oriented service layer for Coem integrations.

This module provides a stable request/response API so non-human clients can
run, inspect and format programs deterministically.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from coem.errors import CLIError, CoemError, format_coem_error
from coem.main import explain_source, format_source, run_source


def run_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Run source payload and return its echo."""
    source, filename = _resolve_source_payload(payload)
    artifacts = run_source(source, filename=filename)
    return {
        "echo": artifacts.echo,
        "metrics": {
            "tokens": len(artifacts.tokens),
            "statements": len(artifacts.statements),
        },
    }


def parse_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the AST for given payload."""
    source, filename = _resolve_source_payload(payload)
    return explain_source(source, filename=filename)


def format_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Return canonical source for given payload."""
    source, filename = _resolve_source_payload(payload)
    return {"formatted": format_source(source, filename=filename)}


def capabilities_request(payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return service capability metadata for automation clients."""
    return {
        "service": "coem",
        "version": "0.1.0",
        "methods": sorted(_METHODS.keys()),
        "directives": ["as palimpsest", "in dialogue"],
    }


_METHODS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "run": run_request,
    "parse": parse_request,
    "format": format_request,
    "capabilities": capabilities_request,
}


def dispatch(method: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Dispatch a method call for integration adapters."""
    fn = _METHODS.get(method)
    if fn is None:
        raise CLIError(
            code="SRV001",
            message=f"Unknown service method '{method}'.",
            span=None,
            hint=f"Available methods: {', '.join(sorted(_METHODS.keys()))}",
        )
    return fn(payload or {})


def _resolve_source_payload(payload: dict[str, Any]) -> tuple[str, str]:
    source = payload.get("source")
    input_path = payload.get("input_path")

    if source is not None and input_path is not None:
        raise CLIError(
            code="SRV002",
            message="Provide only one of 'source' or 'input_path'.",
            span=None,
            hint="Use inline source for API calls or file path for local source files.",
        )

    if input_path is not None:
        path = Path(str(input_path))
        try:
            return path.read_text(encoding="utf-8"), str(path)
        except FileNotFoundError as exc:
            raise CLIError(
                code="SRV003",
                message=f"Input file not found: {path}",
                span=None,
                hint="Check input_path and file permissions.",
            ) from exc

    if source is not None:
        return str(source), str(payload.get("filename", "<inline>"))

    raise CLIError(
        code="SRV004",
        message="Missing source input.",
        span=None,
        hint="Provide 'source' or 'input_path'.",
    )


def safe_dispatch(method: str, payload: dict[str, Any] | None = None) -> tuple[bool, dict[str, Any]]:
    """Dispatch method and normalize errors for integration transport layers."""
    payload = payload or {}
    try:
        return True, dispatch(method, payload)
    except CoemError as err:
        body: dict[str, Any] = {"error": err.to_diagnostic().to_dict()}
        if err.span is not None:
            body["report"] = format_coem_error(err, _report_source(payload))
        return False, body
    except Exception as err:  # pragma: no cover - defensive fallback
        return False, {
            "error": {
                "code": "SRV999",
                "message": format_coem_error(err, "")["oneLiner"],
                "hint": "Inspect server logs for details.",
            }
        }


def _report_source(payload: dict[str, Any]) -> str:
    # Located errors come from a payload whose source already resolved once.
    try:
        source, _ = _resolve_source_payload(payload)
    except CLIError:
        return ""
    return source
