"""
Pipeline Catalog

Fixed service-provider and user catalogs plus the six stage definitions
of the SAML2 SSO browser flow.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


SP_ENTITY_IDS: Tuple[str, ...] = (
    "CNKI",
    "Elsevier (ScienceDirect)",
    "IEEE Xplore",
    "Web of Science",
    "Zoom Video",
    "Tsinghua University (IPv6)",
    "Springer Nature",
)

MOCK_USERS: Tuple[str, ...] = (
    "2021001045 (student)",
    "2022003102 (student)",
    "js_lihua (faculty)",
    "mz_zhang (staff)",
    "sys_admin",
    "lib_guest",
)

UNKNOWN_USER = "unknown-user"

CANCELED_DETAILS = "Canceled due to upstream failure."


@dataclass(frozen=True)
class StageDefinition:
    """
    Identity of one pipeline stage.

    details is a template; {sp} and {user} are filled in per transaction.
    failure_details is set only for stages that can be a failure point.
    """
    id: str
    short_name: str
    name: str
    duration_ms: int
    offset_ms: int
    details: str
    failure_details: Optional[str] = None

    @property
    def canceled_name(self) -> str:
        return f"{self.short_name} (canceled)"


RECEIPT = StageDefinition(
    id="1",
    short_name="Receipt",
    name="Receipt (request received)",
    duration_ms=10,
    offset_ms=10,
    details="Interface eth0 accepted a SAML2 HTTP-Redirect request from {sp}.",
)

PARSING = StageDefinition(
    id="2",
    short_name="Parsing",
    name="Parsing (message decode)",
    duration_ms=5,
    offset_ms=20,
    details="Jetty (port 8443) decoded the XML message; SAML signature is valid.",
)

IDENTITY = StageDefinition(
    id="3",
    short_name="Identity",
    name="Identity (credential check)",
    duration_ms=130,
    offset_ms=150,
    details="Binding account {user} against the LDAP directory over the internal network...",
    failure_details="Invalid credentials or account locked (LDAP error 49).",
)

ATTRIBUTES = StageDefinition(
    id="4",
    short_name="Attributes",
    name="Attributes (directory lookup)",
    duration_ms=100,
    offset_ms=250,
    details="Querying ou=People,dc=yzu,dc=edu,dc=cn for user attributes.",
    failure_details="LDAP connection timed out (3000ms); attributes could not be read.",
)

FILTERING = StageDefinition(
    id="5",
    short_name="Filtering",
    name="Filtering (attribute release)",
    duration_ms=10,
    offset_ms=260,
    details="Applied attribute-filter.xml rules; releasing 'eduPersonScopedAffiliation'.",
)

SIGNING = StageDefinition(
    id="6",
    short_name="Signing",
    name="Signing (response assertion)",
    duration_ms=20,
    offset_ms=280,
    details="Signed the response with idp-signing.crt; returned 200 OK.",
    failure_details="Signing certificate expired or misconfigured.",
)

PIPELINE: Tuple[StageDefinition, ...] = (
    RECEIPT,
    PARSING,
    IDENTITY,
    ATTRIBUTES,
    FILTERING,
    SIGNING,
)

PIPELINE_DURATION_MS = sum(stage.duration_ms for stage in PIPELINE)
