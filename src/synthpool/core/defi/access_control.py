"""
Role-based access control for privileged ledger operations.

Admin configuration and bridge entry points are gated by roles. Every
grant, revoke and denied access is kept in an audit trail.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import AuthorizationError, ValidationError

logger = logging.getLogger(__name__)


class Role(Enum):
    """Roles recognised by the core."""
    ADMIN = "admin"
    BRIDGE = "bridge"


@dataclass
class AuditEntry:
    action: str
    role: str
    account: str
    actor: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class RoleRegistry:
    """
    Role assignments keyed by lower-cased address.

    Usage:
        roles = RoleRegistry()
        roles.grant(Role.ADMIN, "0xadmin", actor="deployer")
        roles.require(Role.ADMIN, caller)
    """

    members: dict[Role, set[str]] = field(default_factory=dict)
    audit_log: list[AuditEntry] = field(default_factory=list)

    def grant(self, role: Role, account: str, actor: str = "") -> None:
        if not account:
            raise ValidationError("Cannot grant role to empty address")
        account = account.lower()
        self.members.setdefault(role, set()).add(account)
        self.audit_log.append(AuditEntry("grant", role.value, account, actor.lower()))
        logger.info(
            "Role granted",
            extra={"event": "access.grant", "role": role.value, "account": account[:10]},
        )

    def revoke(self, role: Role, account: str, actor: str = "") -> None:
        account = account.lower()
        self.members.get(role, set()).discard(account)
        self.audit_log.append(AuditEntry("revoke", role.value, account, actor.lower()))
        logger.info(
            "Role revoked",
            extra={"event": "access.revoke", "role": role.value, "account": account[:10]},
        )

    def has_role(self, role: Role, account: str) -> bool:
        return account.lower() in self.members.get(role, set())

    def require(self, role: Role, account: str) -> None:
        """
        Raises:
            AuthorizationError: If ``account`` does not hold ``role``
        """
        if not self.has_role(role, account):
            self.audit_log.append(AuditEntry("denied", role.value, account.lower(), account.lower()))
            logger.warning(
                "Access denied",
                extra={"event": "access.denied", "role": role.value, "account": account[:10]},
            )
            raise AuthorizationError(
                f"Caller lacks {role.value} role",
                details={"role": role.value, "account": account},
            )

    def snapshot(self) -> dict:
        """Membership copy plus the audit-log length; the log itself is append-only."""
        return {
            "members": {role: set(accounts) for role, accounts in self.members.items()},
            "audit_count": len(self.audit_log),
        }

    def restore(self, snapshot: dict) -> None:
        self.members = snapshot["members"]
        del self.audit_log[snapshot["audit_count"]:]
