from typing import Optional

from fastapi import Depends, Header

from stockledger.core.constants import ROLE_ADMIN, ROLE_STORE_MANAGER
from stockledger.core.identity import Operator
from stockledger.core.security import authenticate_request, ensure_role, resolve_operator
from stockledger.database.session import get_db, get_session_factory


def require_auth(
    api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
):
    api_key_value = api_key or api_key_alt
    return authenticate_request(
        api_key=api_key_value,
        authorization=authorization,
        require_auth=True,
    )


def get_operator(
    auth=Depends(require_auth),
    operator_id: Optional[str] = Header(None, alias="X-Operator-Id"),
    operator_name: Optional[str] = Header(None, alias="X-Operator-Name"),
    operator_role: Optional[str] = Header(None, alias="X-Operator-Role"),
) -> Operator:
    return resolve_operator(auth, operator_id, operator_name, operator_role)


def require_role(*roles):
    def _dependency(operator: Operator = Depends(get_operator)) -> Operator:
        return ensure_role(operator, roles)

    return _dependency


require_writer = require_role(ROLE_ADMIN, ROLE_STORE_MANAGER)
require_admin = require_role(ROLE_ADMIN)


__all__ = [
    "get_db",
    "get_operator",
    "get_session_factory",
    "require_admin",
    "require_auth",
    "require_role",
    "require_writer",
]
