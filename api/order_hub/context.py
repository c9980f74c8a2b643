from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """Tenant (client) and organization the current request acts for."""
    client_id: int
    org_id: int
