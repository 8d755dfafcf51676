"""
Trace Generator

Fabricates synthetic SAML2 SSO transactions through the fixed six-stage
pipeline, with cascading failure propagation.

DESIGN RULES:
- All randomness comes from the injected random.Random
- Per-stage rolls are computed first; the cascade is a pure fold over them
- Stage durations never change with the outcome
"""

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from schemas.trace import RequestLog, RequestStatus, StepStatus, TraceStep
from telemetry.audit import AuditLogFormatter
from telemetry.catalog import (
    ATTRIBUTES,
    CANCELED_DETAILS,
    IDENTITY,
    MOCK_USERS,
    PIPELINE,
    SIGNING,
    SP_ENTITY_IDS,
    UNKNOWN_USER,
    StageDefinition,
)

DEFAULT_ERROR_RATE = 0.15
DEFAULT_HOSTNAME = "idp.yzu.edu.cn"

_ID_ALPHABET = string.digits + string.ascii_uppercase
_ID_LENGTH = 8


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def roll_outcomes(rng: random.Random, erroneous: bool) -> Tuple[StepStatus, ...]:
    """
    Independent per-stage outcome rolls, before the cascade.

    Identity and attribute stages fail on a fair coin, drawn only for
    erroneous requests. Signing fails whenever the request is erroneous.
    """
    statuses = []
    for stage in PIPELINE:
        if stage is IDENTITY or stage is ATTRIBUTES:
            failed = erroneous and rng.random() < 0.5
        elif stage is SIGNING:
            failed = erroneous
        else:
            failed = False
        statuses.append(StepStatus.FAILURE if failed else StepStatus.SUCCESS)
    return tuple(statuses)


def cascade(statuses: Sequence[StepStatus]) -> Tuple[Tuple[StepStatus, ...], Optional[int]]:
    """
    Left-to-right fold carrying a failed flag.

    Every stage after the first failure becomes pending. Returns the final
    statuses and the index of the failure point (None if all succeeded).
    """
    failed_at: Optional[int] = None
    final: List[StepStatus] = []
    for index, status in enumerate(statuses):
        if failed_at is not None:
            status = StepStatus.PENDING
        if status == StepStatus.FAILURE and failed_at is None:
            failed_at = index
        final.append(status)
    return tuple(final), failed_at


def build_step(
    stage: StageDefinition,
    status: StepStatus,
    started_at: datetime,
    sp: str,
    user_token: str,
) -> TraceStep:
    """Materialize one stage with its final status."""
    if status == StepStatus.PENDING:
        name = stage.canceled_name
        details = CANCELED_DETAILS
    elif status == StepStatus.FAILURE and stage.failure_details:
        name = stage.name
        details = stage.failure_details
    else:
        name = stage.name
        details = stage.details.format(sp=sp, user=user_token)

    return TraceStep(
        id=stage.id,
        name=name,
        status=status,
        timestamp=(started_at + timedelta(milliseconds=stage.offset_ms)).isoformat(),
        details=details,
        duration_ms=stage.duration_ms,
    )


class TraceGenerator:
    """
    Produces one synthetic RequestLog per call.

    Seeding the injected random source makes every call reproducible.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        formatter: Optional[AuditLogFormatter] = None,
        error_rate: float = DEFAULT_ERROR_RATE,
        hostname: str = DEFAULT_HOSTNAME,
        sp_catalog: Sequence[str] = SP_ENTITY_IDS,
        users: Sequence[str] = MOCK_USERS,
    ):
        self._rng = rng or random.Random()
        self._clock = clock or utc_now
        self._formatter = formatter or AuditLogFormatter(clock=self._clock)
        self._error_rate = error_rate
        self._hostname = hostname
        self._sp_catalog = tuple(sp_catalog)
        self._users = tuple(users)

    def _transaction_id(self) -> str:
        suffix = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
        return f"REQ-{suffix}"

    def generate(self) -> RequestLog:
        rng = self._rng
        erroneous = rng.random() < self._error_rate
        sp = rng.choice(self._sp_catalog)
        user = rng.choice(self._users)
        user_token = user.split(" ")[0]
        tx_id = self._transaction_id()
        started_at = self._clock()

        statuses, failed_at = cascade(roll_outcomes(rng, erroneous))
        steps = [
            build_step(stage, status, started_at, sp, user_token)
            for stage, status in zip(PIPELINE, statuses)
        ]
        failed = failed_at is not None

        # Only a rejected credential hides who tried to sign in
        identity_index = PIPELINE.index(IDENTITY)
        principal = UNKNOWN_USER if failed and failed_at == identity_index else user

        return RequestLog(
            id=tx_id,
            timestamp=started_at,
            sp_entity_id=sp,
            user_principal=principal,
            status=RequestStatus.FAILURE if failed else RequestStatus.SUCCESS,
            duration_ms=sum(step.duration_ms for step in steps),
            steps=steps,
            raw_logs=self._narrative(started_at, tx_id, sp, user_token, failed),
            audit_log=self._formatter.format(tx_id, sp, user_token, failed, timestamp=started_at),
        )

    def _narrative(
        self,
        started_at: datetime,
        tx_id: str,
        sp: str,
        user_token: str,
        failed: bool,
    ) -> List[str]:
        """process.log lines for one transaction."""
        prefix = f"[{started_at.isoformat()}] [{self._hostname}]"
        lines = [
            f"{prefix} INFO [net.shibboleth.idp.authn]: Request received from {sp}",
            f"{prefix} DEBUG [net.shibboleth.idp.profile]: Transaction {tx_id} started on {self._hostname}",
        ]
        if failed:
            lines.append(f"{prefix} WARN [net.shibboleth.idp.authn]: Authentication failure for {user_token}")
            lines.append(f"{prefix} ERROR [net.shibboleth.idp.profile]: Flow execution halted")
        else:
            lines.append(f"{prefix} INFO [net.shibboleth.idp.authn]: Authentication success for {user_token}")
            lines.append(f"{prefix} INFO [net.shibboleth.idp.consent]: Attribute release: {user_token} -> {sp}")
        return lines
