"""Raw IMS API call command implementation (``ims get`` / ``ims post``)."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import Any

import click

from imscli.cli.runtime import Runtime
from imscli.core.auth.environments import API_PREFIX
from imscli.core.context.store import ContextStoreError
from imscli.core.errors import (
    ApiNotFound,
    ContextNotConfigured,
    ImsCliError,
    InvalidApi,
)
from imscli.models.context import ApiInvocation, HttpMethod
from imscli.ui.echo import print_object

logger = logging.getLogger(__name__)

API_NOT_FOUND_REASON = "API does not exist"


def validate_api(api: str | None) -> str:
    """Ensure the API path lives in the IMS namespace."""
    if not api or not api.startswith(API_PREFIX):
        raise InvalidApi(f"Invalid IMS API '{api}' - must start with '{API_PREFIX}'")
    return api


def parse_parameters(pairs: Iterable[str], *, strict: bool = False) -> dict[str, str]:
    """Build a parameter map from ``name=value`` pairs.

    The pair is split on the first ``=``; a pair without one maps to the
    empty string. Duplicate names keep the last value unless ``strict``.
    """
    params: dict[str, str] = {}
    for pair in pairs:
        name, _, value = pair.partition("=")
        if strict and name in params:
            raise InvalidApi(f"Duplicate request parameter '{name}'")
        params[name] = value
    return params


def failure_reason(exc: Exception) -> str:
    """Map a failed call to the reason shown to the user."""
    if isinstance(exc, ApiNotFound):
        return API_NOT_FOUND_REASON
    if isinstance(exc, ImsCliError):
        return exc.message
    return str(exc) or type(exc).__name__


def perform_call(
    runtime: Runtime,
    *,
    context_name: str | None,
    api: str,
    data: Iterable[str],
    method: HttpMethod,
    strict_params: bool = False,
) -> Any:
    """Validate, resolve, authenticate and call. Returns the decoded result.

    InvalidApi and ContextNotConfigured are raised before any network traffic.
    """
    validate_api(api)
    params = parse_parameters(data, strict=strict_params)
    context = runtime.store.resolve(context_name)

    logger.debug("Context: %s", context.name)
    logger.debug("API    : %s %s", method, api)
    logger.debug("Params : %s", ", ".join(sorted(params)) or "-")

    token = runtime.tokens.get_token(context.name)
    invocation = ApiInvocation(api=api, method=method, params=params, token=token)
    return runtime.client.call(context, invocation)


def run_call(
    runtime: Runtime,
    *,
    context_name: str | None,
    api: str,
    data: Iterable[str],
    method: HttpMethod,
    fmt: str = "json",
    strict_params: bool = False,
) -> None:
    """Run a raw call command, printing the result or exiting with status 1."""
    try:
        result = perform_call(
            runtime,
            context_name=context_name,
            api=api,
            data=data,
            method=method,
            strict_params=strict_params,
        )
    except (InvalidApi, ContextNotConfigured) as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)
    except ContextStoreError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except ImsCliError as exc:
        logger.debug("Call failed: %s (%s)", exc, exc.kind)
        click.echo(f"Failed calling {api}\nReason: {failure_reason(exc)}", err=True)
        sys.exit(1)
    except Exception as exc:
        logger.debug("Call failed unexpectedly", exc_info=True)
        click.echo(f"Failed calling {api}\nReason: {failure_reason(exc)}", err=True)
        sys.exit(1)
    print_object(result, fmt)
