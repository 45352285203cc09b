"""OpenClaw agent webhook delivery."""

from gmailrelay.infrastructure.openclaw.outbound import (
    OpenClawClient,
    backoff_delay,
)

__all__ = [
    "OpenClawClient",
    "backoff_delay",
]
