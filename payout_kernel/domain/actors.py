"""Well-known actor identities."""

from uuid import UUID

# Actor recorded for automatic (unattended) settlement sweeps.
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000001")
