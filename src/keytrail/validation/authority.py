"""AWS-backed validation authorities.

Both authorities are read-only identity checks:

* ``IamLastUsedAuthority`` calls ``iam:GetAccessKeyLastUsed`` with the
  operator's own credentials. A key owned by a user of that account is
  Valid; ``NoSuchEntity`` or an answer without a user is Invalid.
* ``StsCallerIdentityAuthority`` calls ``sts:GetCallerIdentity`` signed with
  the candidate pair itself. Success is Valid; ``InvalidClientTokenId`` is
  Invalid.

Anything else (timeouts, throttling, missing local credentials, signature
mismatches, unexpected errors) is Indeterminate, never Invalid.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ParamValidationError,
    ReadTimeoutError,
)

from keytrail.config.schema import ValidationConfig
from keytrail.findings.models import CandidateCredential, ValidationOutcome

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchEntity", "InvalidClientTokenId"})
_THROTTLE_CODES = frozenset({
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
})


class AuthoritySetupError(Exception):
    """Raised when an AWS client cannot be built (bad profile, bad region)."""


class ValidationAuthority(Protocol):
    def validate(self, candidate: CandidateCredential) -> ValidationOutcome: ...


def classify_error(exc: BaseException) -> ValidationOutcome:
    """Map an exception raised by a validation call to an outcome."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "")
        if code in _NOT_FOUND_CODES:
            return ValidationOutcome.invalid(code)
        if code in _THROTTLE_CODES:
            return ValidationOutcome.indeterminate("throttled")
        if code == "SignatureDoesNotMatch":
            return ValidationOutcome.indeterminate("key id exists but the paired secret does not match")
        return ValidationOutcome.indeterminate(f"{code or 'ClientError'}: {error.get('Message', exc)}")
    if isinstance(exc, (ConnectTimeoutError, ReadTimeoutError)):
        return ValidationOutcome.indeterminate("timeout")
    if isinstance(exc, EndpointConnectionError):
        return ValidationOutcome.indeterminate(f"network error: {exc}")
    if isinstance(exc, NoCredentialsError):
        return ValidationOutcome.indeterminate("no AWS credentials available for the check")
    if isinstance(exc, ParamValidationError):
        return ValidationOutcome.indeterminate("malformed key id, not checked")
    if isinstance(exc, BotoCoreError):
        return ValidationOutcome.indeterminate(str(exc))
    return ValidationOutcome.indeterminate(f"{type(exc).__name__}: {exc}")


def client_config(cfg: ValidationConfig) -> Config:
    return Config(
        region_name=cfg.region,
        connect_timeout=cfg.connect_timeout_s,
        read_timeout=cfg.read_timeout_s,
        retries={"max_attempts": cfg.max_attempts, "mode": "standard"},
    )


class IamLastUsedAuthority:
    def __init__(self, client: Any) -> None:
        # Low-level boto3 clients are safe to share between threads.
        self._client = client

    @classmethod
    def from_config(cls, cfg: ValidationConfig) -> "IamLastUsedAuthority":
        try:
            session = boto3.session.Session(profile_name=cfg.profile)
            client = session.client("iam", config=client_config(cfg))
        except BotoCoreError as exc:
            raise AuthoritySetupError(str(exc)) from exc
        return cls(client)

    def validate(self, candidate: CandidateCredential) -> ValidationOutcome:
        try:
            resp = self._client.get_access_key_last_used(AccessKeyId=candidate.identifier)
        except (ClientError, BotoCoreError) as exc:
            return classify_error(exc)
        user = resp.get("UserName")
        if user:
            return ValidationOutcome.valid(f"active key of IAM user {user}")
        return ValidationOutcome.invalid("no IAM user owns this key")


class StsCallerIdentityAuthority:
    def __init__(self, cfg: ValidationConfig, session: Optional[Any] = None) -> None:
        self._config = client_config(cfg)
        self._session = session or boto3.session.Session()
        # Sessions are not thread-safe; only client creation needs the lock.
        self._lock = threading.Lock()

    def _client_for(self, candidate: CandidateCredential):
        with self._lock:
            return self._session.client(
                "sts",
                aws_access_key_id=candidate.identifier,
                aws_secret_access_key=candidate.secret,
                config=self._config,
            )

    def validate(self, candidate: CandidateCredential) -> ValidationOutcome:
        try:
            resp = self._client_for(candidate).get_caller_identity()
        except (ClientError, BotoCoreError) as exc:
            return classify_error(exc)
        return ValidationOutcome.valid(f"authenticates as {resp.get('Arn', 'unknown principal')}")


def build_authority(cfg: ValidationConfig) -> ValidationAuthority:
    """Return the authority selected by ``validation.mode``."""
    logger.debug("Validation mode %s, region %s", cfg.mode, cfg.region)
    if cfg.mode == "sts":
        return StsCallerIdentityAuthority(cfg)
    return IamLastUsedAuthority.from_config(cfg)
