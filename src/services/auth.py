import logging

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from src.utils.utils import decode_jwt

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


class AuthService:
    """Verifies bearer tokens issued by the identity service.

    Login and refresh live with the identity service; this API only reads
    the claims it needs (user id, email, role).
    """

    def __init__(self, db: Session):
        self.db = db

    def verify_token(self, token: str = Depends(oauth2_scheme)) -> dict | None:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError as e:
            logging.info("Rejected bearer token: %s", e)
            return None

        user_id = payload.get("sub") or payload.get("id")
        if not user_id:
            return None
        return {
            "id": str(user_id),
            "email": payload.get("email"),
            "role": payload.get("role"),
        }


AuthService.oauth2_scheme = oauth2_scheme
