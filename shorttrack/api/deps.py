# shorttrack/api/deps.py
from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from shorttrack.core.errors import Unauthorized
from shorttrack.core.security import jwt_service
from shorttrack.db.database import get_db
from shorttrack.models.user import User
from shorttrack.repositories.user_repo import get_by_id
from shorttrack.services.delivery import DeliveryGateway, delivery_gateway

# ----------------------------------------------------------
# Security
# ----------------------------------------------------------
security = HTTPBearer(auto_error=False)


def get_delivery() -> DeliveryGateway:
    """In Tests per dependency_overrides austauschbar."""
    return delivery_gateway


# ----------------------------------------------------------
# Bearer-Token-Authentifizierung (API)
# ----------------------------------------------------------
def get_current_user_api(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise Unauthorized("No token")

    user_id = jwt_service.verify(credentials.credentials)
    user = get_by_id(db, user_id)
    if not user:
        raise Unauthorized("User not found")
    return user
