from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .errors import AuthenticationRequired, InvalidToken

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


# ---------- Password hashing ----------

def hash_password(plaintext: str) -> str:
    return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def verify_password(plaintext: str, digest: str) -> bool:
    # Over-long input can never match a digest bcrypt produced
    if len(plaintext.encode()) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(plaintext.encode(), digest.encode())


# ---------- Tokens ----------

class TokenIssuer:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int, expires_delta: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        return jwt.encode({"sub": str(user_id), "exp": expire}, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
            return int(payload["sub"])
        except (JWTError, KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.tokens


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> int:
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired()
    user_id = tokens.verify(credentials.credentials)
    request.state.user_id = user_id
    return user_id
