"""
Central constants for the Corpo Ativo application.
"""
from __future__ import annotations

ROLE_OWNER = "owner"
ROLE_STAFF = "staff"
ROLE_MEMBER = "member"

ROLES = frozenset({ROLE_OWNER, ROLE_STAFF, ROLE_MEMBER})

# Roles reachable through the role endpoint. Nobody is ever promoted to owner.
ASSIGNABLE_ROLES = (ROLE_STAFF, ROLE_MEMBER)

GYM_STATUSES = ("ativo", "inadimplente", "experimental", "cancelado")
DEFAULT_GYM_STATUS = "experimental"

AUDIT_DEFAULT_LIMIT = 100
AUDIT_MAX_LIMIT = 500
