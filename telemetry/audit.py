"""
Audit Log Formatter

Builds the structured audit.log line for a transaction.

Format (8 pipe-delimited fields):
    timestamp|binding|requestId|peer|profile|principal|authn|attributes

No escaping is done; callers must not pass values containing '|'.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Callable, Dict, Optional

SAML2_REDIRECT_BINDING = "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect"
SSO_BROWSER_PROFILE = "http://shibboleth.net/ns/profiles/saml2/sso/browser"
AUTHN_METHOD = "Password"
RELEASED_ATTRIBUTES = "eduPersonScopedAffiliation,mail,cn"

SYSTEM_STOP_EVENT = "SYSTEM_EVENT|STOP|INITIATED_BY_ADMIN"

FIELD_SEPARATOR = "|"
FIELD_COUNT = 8


def format_timestamp(timestamp: datetime) -> str:
    """ISO timestamp with a space instead of 'T', millisecond precision."""
    return timestamp.isoformat(sep=" ", timespec="milliseconds")


@dataclass
class AuditEntry:
    """
    One parsed audit line.
    """
    timestamp: str
    binding: str
    request_id: str
    peer: str
    profile: str
    principal: str
    authn_method: str
    attributes: str

    @property
    def failed(self) -> bool:
        return self.principal == "" and self.attributes == ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["attributes"] = self.attributes.split(",") if self.attributes else []
        return data


class AuditLogFormatter:
    """
    Formats transactions as audit lines.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def format(
        self,
        transaction_id: str,
        sp_entity_id: str,
        user_token: str,
        failed: bool,
        timestamp: Optional[datetime] = None,
    ) -> str:
        """
        Build the audit line.

        Principal and attribute fields are left empty for failed
        transactions.
        """
        fields = [
            format_timestamp(timestamp or self._clock()),
            SAML2_REDIRECT_BINDING,
            transaction_id,
            sp_entity_id,
            SSO_BROWSER_PROFILE,
            "" if failed else user_token,
            AUTHN_METHOD,
            "" if failed else RELEASED_ATTRIBUTES,
        ]
        return FIELD_SEPARATOR.join(fields)

    @staticmethod
    def parse(line: str) -> AuditEntry:
        """
        Split an audit line back into its fields.

        Raises:
            ValueError: if the line does not have exactly 8 fields
        """
        fields = line.split(FIELD_SEPARATOR)
        if len(fields) != FIELD_COUNT:
            raise ValueError(f"Audit line has {len(fields)} fields, expected {FIELD_COUNT}")
        return AuditEntry(*fields)
