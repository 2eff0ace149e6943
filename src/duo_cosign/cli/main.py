"""Command-line entry point for duo-cosign."""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Sequence

from duo_cosign.cli.config import ConfigError, DuoConfig, load_config
from duo_cosign.cli.input import InputError
from duo_cosign.cli.output import print_error
from duo_cosign.cli.personas import (
    EXIT_FATAL,
    EXIT_NEGATIVE,
    PERSONAS,
    PersonaContext,
    find_persona,
)
from duo_cosign.client import DuoClient
from duo_cosign.errors import DuoCosignError, ProtocolError

EXIT_UNRECOGNIZED = EXIT_NEGATIVE


def _package_version() -> str:
    try:
        return pkg_version("duo-cosign")
    except PackageNotFoundError:
        return "0.0.0+local"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duo-cosign",
        description="Duo two-factor connector for cosign factor adapters.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"duo-cosign {_package_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to connector config TOML (default: $DUO_COSIGN_CONFIG or "
        "/etc/duo_cosign/config.toml)",
    )
    parser.add_argument(
        "persona",
        help="One of: " + ", ".join(entry.identity for entry in PERSONAS),
    )
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Persona arguments")
    return parser


def _build_client(config: DuoConfig) -> DuoClient:
    return DuoClient(
        ikey=config.ikey,
        skey=config.skey,
        api_host=config.api_host,
        timeout=config.timeout,
        retries=config.retries,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin=sys.stdin,
    stdout=sys.stdout,
    stderr=sys.stderr,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    entry = find_persona(args.persona)
    if entry is None:
        return print_error(
            stderr,
            args.persona,
            "unrecognized execution name",
            code=EXIT_UNRECOGNIZED,
        )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        return print_error(stderr, "config error", str(exc), code=EXIT_FATAL)

    try:
        client = _build_client(config)
    except DuoCosignError as exc:
        return print_error(stderr, "client error", str(exc), code=EXIT_FATAL)

    with client:
        ctx = PersonaContext(
            name=entry.identity,
            config=config,
            client=client,
            stdin=getattr(stdin, "buffer", stdin),
            stdout=stdout,
            stderr=stderr,
        )
        try:
            return entry.handler(ctx, list(args.args), entry.flags)
        except InputError as exc:
            return print_error(stderr, entry.identity, f"input error: {exc}", code=EXIT_FATAL)
        except ProtocolError as exc:
            return print_error(stderr, entry.identity, f"protocol error: {exc}", code=EXIT_FATAL)


if __name__ == "__main__":
    raise SystemExit(main())
