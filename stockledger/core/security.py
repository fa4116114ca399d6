from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status

from stockledger.config import get_settings
from stockledger.core.constants import OPERATOR_ROLES, ROLE_VIEWER, SOURCE_WEB
from stockledger.core.identity import Operator


def _load_api_keys() -> set[str]:
    settings = get_settings()
    keys = set()
    if settings.API_KEYS:
        for value in settings.API_KEYS.split(","):
            value = value.strip()
            if value:
                keys.add(value)
    return keys


def _get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_jwt(token: str) -> dict:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT auth is not configured",
        )
    import jwt

    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid JWT",
        ) from exc


def authenticate_request(
    api_key: Optional[str],
    authorization: Optional[str],
    *,
    require_auth: bool = False,
) -> Optional[dict]:
    settings = get_settings()
    keys = _load_api_keys()

    if settings.JWT_REQUIRED:
        require_auth = True

    if api_key and api_key in keys and not settings.JWT_REQUIRED:
        return {"auth_type": "api_key"}

    token = _get_bearer_token(authorization)
    if token:
        try:
            payload = _decode_jwt(token)
            return {"auth_type": "jwt", "payload": payload}
        except HTTPException:
            if settings.JWT_REQUIRED:
                raise

    if (require_auth or keys or settings.JWT_REQUIRED) and (
        keys or settings.JWT_SECRET or settings.JWT_REQUIRED
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return None


def resolve_operator(
    auth: Optional[dict],
    operator_id: Optional[str],
    operator_name: Optional[str],
    operator_role: Optional[str],
) -> Operator:
    # JWT claims win over headers when a token was presented.
    claims = (auth or {}).get("payload") or {}
    raw_id = claims.get("sub", operator_id)
    name = claims.get("name", operator_name) or "Unknown"
    role = (claims.get("role", operator_role) or ROLE_VIEWER).strip().lower()

    if role not in OPERATOR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unknown operator role: {}".format(role),
        )

    parsed_id = None
    if raw_id is not None and str(raw_id).strip():
        try:
            parsed_id = int(str(raw_id).strip())
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Operator id must be an integer",
            ) from exc

    return Operator(operator_id=parsed_id, name=str(name), role=role, source=SOURCE_WEB)


def ensure_role(operator: Operator, allowed_roles) -> Operator:
    if operator.role not in allowed_roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operator role '{}' is not allowed to perform this action".format(
                operator.role
            ),
        )
    return operator
