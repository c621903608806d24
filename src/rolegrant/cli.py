"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .authz.assigner import RoleAssigner
from .authz.client import RoleAssignmentsClient
from .config import AppConfig, RoleBinding, load_config
from .errors import ExitCode, RoleGrantError, user_facing_error
from .logging import configure_logging, default_log_path
from .retry import CancellationToken

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

ClientFactory = Callable[[str], RoleAssignmentsClient]


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _timeout_type(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--timeout must be a number of seconds") from exc
    if seconds <= 0:
        raise argparse.ArgumentTypeError("--timeout must be greater than zero")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rolegrant",
        description="Assign roles to a service principal, waiting out identity propagation.",
    )
    parser.add_argument("--principal-id", required=True)
    parser.add_argument("--role-id", default=None)
    parser.add_argument("--scope", default=None)
    parser.add_argument("--role-name", default=None, help="Role label used in messages")
    parser.add_argument("--subscription-id", default=None)
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--timeout", type=_timeout_type, default=None)
    parser.add_argument(
        "--log-level",
        type=_log_level_type,
        default=None,
        help="DEBUG, INFO, WARN or ERROR (default: $ROLEGRANT_LOG_LEVEL, then INFO)",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_bindings(namespace: argparse.Namespace, config: AppConfig) -> list[RoleBinding]:
    if namespace.role_id:
        if not namespace.scope:
            raise RoleGrantError(
                "Missing scope for role assignment.",
                code=ExitCode.INVALID_ARGS,
                hint="--scope is required together with --role-id.",
            )
        return [
            RoleBinding(
                role_id=namespace.role_id,
                scope=namespace.scope,
                role_name=namespace.role_name or namespace.role_id,
            )
        ]
    if not config.role_bindings:
        raise RoleGrantError(
            "No role assignments requested.",
            code=ExitCode.INVALID_ARGS,
            hint="Pass --role-id and --scope, or add role_bindings to the config file.",
        )
    return list(config.role_bindings)


def azure_client_factory(subscription_id: str) -> RoleAssignmentsClient:
    if not subscription_id:
        raise RoleGrantError(
            "Azure subscription id is not configured.",
            code=ExitCode.CONFIG_ERROR,
            hint="Pass --subscription-id or set ROLEGRANT_SUBSCRIPTION_ID.",
        )
    from rolegrant.authz.azure_client import build_azure_client

    return build_azure_client(subscription_id)


def run_assignments(
    namespace: argparse.Namespace,
    config: AppConfig,
    *,
    client_factory: ClientFactory,
    token: CancellationToken,
) -> int:
    bindings = resolve_bindings(namespace, config)
    subscription_id = namespace.subscription_id or config.subscription_id
    assigner = RoleAssigner(
        client_factory(subscription_id),
        policy=config.retry_policy(),
        subscription_id=subscription_id,
    )
    if namespace.timeout is not None:
        token.cancel_after(namespace.timeout)
    try:
        for binding in bindings:
            assigner.assign_role(
                namespace.principal_id,
                binding["role_id"],
                binding["scope"],
                binding["role_name"],
                token=token,
            )
    finally:
        token.disarm()
    return int(ExitCode.SUCCESS)


def main(
    argv: Sequence[str] | None = None,
    *,
    client_factory: ClientFactory | None = None,
    token: CancellationToken | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level, log_file=log_path)

    cancel = token or CancellationToken()
    try:
        config = load_config(namespace.config)
        return run_assignments(
            namespace,
            config,
            client_factory=client_factory or azure_client_factory,
            token=cancel,
        )
    except KeyboardInterrupt:
        cancel.cancel()
        logger.warning("Interrupted by user")
        print(user_facing_error("Interrupted"), file=sys.stderr)
        return int(ExitCode.CANCELLED)
    except RoleGrantError as exc:
        logger.error(
            "Handled RoleGrantError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        hint = f"Inspect logs: {log_path}"
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
