"""Admin login and the bearer-token gate in front of /api."""
from datetime import date, datetime, timedelta, timezone
from fastapi import Request
from fastapi.security import HTTPBearer
from fastapi.responses import JSONResponse
import jwt
import logging
import re

import errors

ADMIN_ID = "admin"
ADMIN_USER = "admin"
ALGORITHM = "HS256"

PUBLIC_PATHS = [
    re.compile(r"^/api/auth/login/?$"),
    re.compile(r"^/api/keepwake/?$"),
    re.compile(r"^/api/bill-details/[^/]+/?$"),
]


def current_date() -> date:
    return date.today()


def expected_password(today: date = None) -> str:
    """Today's server-local day and month as DDMM."""
    today = today or current_date()
    return f"{today.day:02d}{today.month:02d}"


def check_credentials(username: str, password: str):
    if username != ADMIN_USER or password != expected_password():
        raise errors.Unauthorized("Invalid credentials")


def issue_token(secret: str, ttl_minutes: int = 60) -> str:
    claims = {
        "id": ADMIN_ID,
        "username": ADMIN_USER,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> dict:
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        logging.info(f"Rejected token: {e}")
        raise errors.Forbidden("Invalid or expired token.")


def is_protected(path: str) -> bool:
    if not (path == "/api" or path.startswith("/api/")):
        return False
    return not any(p.match(path) for p in PUBLIC_PATHS)


bearer_scheme = HTTPBearer(auto_error=False)


async def bearer_token(request: Request) -> str:
    credentials = await bearer_scheme(request)
    if credentials is None:
        raise errors.Unauthorized("Access denied. No token provided.")
    return credentials.credentials


def token_gate(secret: str):
    """HTTP middleware requiring a valid bearer token on protected /api routes."""

    async def middleware(request: Request, call_next):
        if request.method != "OPTIONS" and is_protected(request.url.path):
            try:
                request.state.user = verify_token(await bearer_token(request), secret)
            except errors.AppointmentError as e:
                return JSONResponse(status_code=e.status_code, content={"message": e.message})
        return await call_next(request)

    return middleware
