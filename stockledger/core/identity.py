from dataclasses import dataclass
from typing import Optional

from stockledger.core.constants import (
    OPERATOR_ROLES,
    ROLE_ADMIN,
    ROLE_VIEWER,
    SOURCE_SYSTEM,
    SOURCE_WEB,
    TRANSACTION_SOURCES,
)


@dataclass(frozen=True)
class Operator:
    """Who performed a write, and through which surface.

    Authorization by role is enforced by the caller; the ledger only records
    the identity on every entry it writes.
    """

    operator_id: Optional[int] = None
    name: str = "Unknown"
    role: str = ROLE_VIEWER
    source: str = SOURCE_WEB

    def __post_init__(self):
        if self.role not in OPERATOR_ROLES:
            raise ValueError("Unknown operator role: {}".format(self.role))
        if self.source not in TRANSACTION_SOURCES:
            raise ValueError("Unknown operator source: {}".format(self.source))


SYSTEM_OPERATOR = Operator(operator_id=None, name="system", role=ROLE_ADMIN, source=SOURCE_SYSTEM)
