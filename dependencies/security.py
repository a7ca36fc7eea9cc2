from typing import Optional, Annotated
from fastapi import Header, HTTPException
from config.settings import settings
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]
RoleHeader = Annotated[Optional[str], Header(alias="X-User-Role")]

def require_api_token(authorization: AuthHeader = None):
    # jeton serveur absent: erreur de configuration explicite
    if not getattr(settings, "API_INTERNAL_TOKEN", None):
        raise HTTPException(status_code=500, detail="Server token not configured")

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # "Bearer <token>"
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # comparaison à temps constant
    if not hmac.compare_digest(token.strip(), settings.API_INTERNAL_TOKEN):
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"client": "scolarflow"}


def require_role(role: str):
    """
    Rôle transmis par la couche d'authentification (en-tête X-User-Role).
    Remplace toute vérification sur une adresse e-mail codée en dur.
    """
    def _check(x_user_role: RoleHeader = None):
        roles = {r.strip().lower() for r in (x_user_role or "").split(",") if r.strip()}
        if role.lower() not in roles:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return {"role": role}
    return _check
