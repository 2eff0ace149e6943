"""Persona table and the per-persona protocol state machines.

Each handler turns one Duo API outcome into caller-facing stdout lines and an
exit code. Variable lines (``$name=value``) always precede the single status
line. Exit codes:

- 0: success (including the silent preauth bypass/not-enrolled branches)
- 1: negative outcome the caller understands (denied, pending, failed)
- 2: fatal local error
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Sequence, TextIO

from duo_cosign.cli.config import DuoConfig
from duo_cosign.cli.input import read_auth_request
from duo_cosign.cli.output import (
    ACCESS_DENIED,
    AUTH_FAILED,
    AUTH_PENDING,
    ProtocolWriter,
    print_error,
    sanitize_error_text,
)
from duo_cosign.client import DuoClient
from duo_cosign.devices import serialize_device_list
from duo_cosign.errors import DeviceSerializationError, DuoCosignError
from duo_cosign.outcomes import (
    AuthOutcome,
    AuthRequest,
    AuthResult,
    PreauthOutcome,
    PreauthResult,
)

EXIT_SUCCESS = 0
EXIT_NEGATIVE = 1
EXIT_FATAL = 2


class ExecMode(enum.IntFlag):
    DEFAULT = 0
    USER_FACTOR = 1


@dataclass
class PersonaContext:
    name: str
    config: DuoConfig
    client: DuoClient
    stdin: BinaryIO
    stdout: TextIO
    stderr: TextIO
    writer: ProtocolWriter = field(init=False)

    def __post_init__(self) -> None:
        self.writer = ProtocolWriter(self.stdout)

    def log(self, message: str) -> None:
        print(f"{self.name}: {sanitize_error_text(message)}", file=self.stderr)


Handler = Callable[[PersonaContext, Sequence[str], ExecMode], int]


@dataclass(frozen=True)
class PersonaEntry:
    identity: str
    handler: Handler
    flags: ExecMode = ExecMode.DEFAULT


def run_ping(ctx: PersonaContext, args: Sequence[str], flags: ExecMode) -> int:
    try:
        timestamp = ctx.client.ping()
    except DuoCosignError as exc:
        return print_error(ctx.stderr, ctx.name, f"ping failed: {exc}", code=EXIT_FATAL)
    ctx.writer.status(str(timestamp))
    return EXIT_SUCCESS


def run_check(ctx: PersonaContext, args: Sequence[str], flags: ExecMode) -> int:
    try:
        timestamp = ctx.client.check()
    except DuoCosignError as exc:
        return print_error(ctx.stderr, ctx.name, f"check failed: {exc}", code=EXIT_FATAL)
    ctx.writer.status(str(timestamp))
    return EXIT_SUCCESS


def run_preauth(ctx: PersonaContext, args: Sequence[str], flags: ExecMode) -> int:
    if not args or not args[0]:
        return print_error(ctx.stderr, ctx.name, "usage: preauth USER", code=EXIT_FATAL)
    user = args[0]

    try:
        outcome = ctx.client.preauth(user)
    except DuoCosignError as exc:
        ctx.log(f"preauth failed for user {user}: {exc}")
        outcome = PreauthOutcome(result=PreauthResult.OTHER)
    return _finish_preauth(ctx, user, outcome, flags)


def _finish_preauth(
    ctx: PersonaContext,
    user: str,
    outcome: PreauthOutcome,
    flags: ExecMode,
) -> int:
    if outcome.result is PreauthResult.AUTH_REQUIRED:
        try:
            device_json = serialize_device_list(outcome.devices)
        except DeviceSerializationError as exc:
            ctx.log(str(exc))
            ctx.writer.status(ACCESS_DENIED)
            return EXIT_NEGATIVE

        # A trailing factor name tells the caller a factor choice comes next.
        if flags & ExecMode.USER_FACTOR:
            ctx.writer.emit(
                ("duo_devices_json", device_json),
                status=ctx.config.display_factor_name,
            )
        else:
            ctx.writer.emit(("duo_devices_json", device_json))
        return EXIT_SUCCESS

    if outcome.result is PreauthResult.USER_ALLOWED:
        ctx.log(f"user {user} configured to bypass 2f")
        return EXIT_SUCCESS

    if outcome.result is PreauthResult.USER_DENIED:
        ctx.writer.status(ACCESS_DENIED)
        return EXIT_NEGATIVE

    if outcome.result is PreauthResult.USER_NOT_ENROLLED:
        ctx.log(f"user {user} not enrolled")
        return EXIT_SUCCESS

    ctx.writer.status(ACCESS_DENIED)
    return EXIT_NEGATIVE


def _finish_auth(ctx: PersonaContext, request: AuthRequest, outcome: AuthOutcome) -> int:
    if outcome.result is AuthResult.ALLOWED:
        ctx.writer.status(ctx.config.display_factor_name)
        return EXIT_SUCCESS

    if outcome.result is AuthResult.PENDING:
        # Pending exits non-zero so the caller renders its waiting template.
        if not outcome.txid:
            ctx.log(
                f"ERROR: pending authentication for user {request.user}, "
                "but no txid returned by auth request"
            )
            ctx.writer.status(AUTH_FAILED)
            return EXIT_NEGATIVE
        ctx.writer.emit(
            ("duo_auth_type", request.factor),
            ("duo_txid", outcome.txid),
            status=AUTH_PENDING,
        )
        return EXIT_NEGATIVE

    ctx.writer.status(AUTH_FAILED)
    ctx.log(
        f"{request.factor} authentication failed for user {request.user}: "
        f"{outcome.status_msg} ({outcome.status})"
    )
    # Refresh the device list for the retry page. USER_FACTOR stays off: a
    # trailing factor name would read as a successful authentication.
    run_preauth(ctx, [request.user], ExecMode.DEFAULT)
    return EXIT_NEGATIVE


def run_auth(ctx: PersonaContext, args: Sequence[str], flags: ExecMode) -> int:
    request = read_auth_request(ctx.stdin)
    try:
        try:
            outcome = ctx.client.auth(request)
        except DuoCosignError as exc:
            outcome = AuthOutcome(result=AuthResult.FAILED, status="error", status_msg=str(exc))
        return _finish_auth(ctx, request, outcome)
    finally:
        request.wipe()


def run_auth_status(ctx: PersonaContext, args: Sequence[str], flags: ExecMode) -> int:
    """Poll a pending push/phone authentication; the data line carries the txid."""
    request = read_auth_request(ctx.stdin)
    try:
        try:
            outcome = ctx.client.auth_status(request.data)
        except DuoCosignError as exc:
            outcome = AuthOutcome(result=AuthResult.FAILED, status="error", status_msg=str(exc))
        return _finish_auth(ctx, request, outcome)
    finally:
        request.wipe()


PERSONAS: tuple[PersonaEntry, ...] = (
    PersonaEntry("auth", run_auth),
    PersonaEntry("auth_status", run_auth_status),
    PersonaEntry("check", run_check),
    PersonaEntry("ping", run_ping),
    PersonaEntry("preauth", run_preauth, ExecMode.USER_FACTOR),
)


def find_persona(identity: str) -> PersonaEntry | None:
    for entry in PERSONAS:
        if entry.identity == identity:
            return entry
    return None
