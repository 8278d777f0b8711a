"""Encryption scheme identifiers stored on password revisions.

Client-side encryption (CSE) happens before content reaches the server, so
only the owner can decrypt it. Server-side encryption (SSE) is applied by the
server and comes in versioned schemes.
"""

from .config import settings

CSE_ENCRYPTION_NONE = "none"
CSE_ENCRYPTION_V1R1 = "CSEv1r1"

SSE_ENCRYPTION_NONE = "none"
SSE_ENCRYPTION_V1R1 = "SSEv1r1"
SSE_ENCRYPTION_V1R2 = "SSEv1r2"


def default_sse_type() -> str:
    """Return the server-side scheme new and upgraded revisions use."""
    return settings.DEFAULT_SSE_TYPE
