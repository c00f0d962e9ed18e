from typing import Optional
from itsdangerous import URLSafeSerializer, BadSignature
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import Property

serializer = URLSafeSerializer(settings.SECRET_KEY, salt="stayrate-property")


def issue_property_token(property_id: int) -> str:
    return serializer.dumps({"pid": property_id})


def read_property_id(token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    try:
        data = serializer.loads(token)
        return int(data.get("pid"))
    except (BadSignature, ValueError, TypeError, AttributeError):
        return None


def require_property(request: Request, db: Session = Depends(get_db)) -> Property:
    """
    Dependency scoping a request to one property.
    The property comes from the signed token in the property header.
    """
    property_id = read_property_id(request.headers.get(settings.PROPERTY_TOKEN_HEADER))
    if not property_id:
        raise HTTPException(status_code=401, detail="Missing or invalid property token")

    prop = db.get(Property, property_id)
    if not prop:
        # The property was deleted but the token is still around.
        raise HTTPException(status_code=401, detail="Missing or invalid property token")

    return prop
