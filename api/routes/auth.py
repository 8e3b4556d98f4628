"""
api/routes/auth.py -- Session login endpoint.

Routes:
  POST /api/auth  -- password login; returns a bearer token

Security:
  AuthService.login() provides timing equalization -- use it, never inline
  the user lookup and password check here.
  Cache-Control: no-store on every login response, success or failure.
  A successful login silently ends any other session of the same user.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import ErrorResponse, LoginRequest, LoginResponse
from auth.dependencies import client_ip
from auth.service import AuthService
from core.errors import InvalidCredentials

logger = logging.getLogger("assetvault.api")

# Auth policy:
# - POST /api/auth: public -- the login endpoint must be unauthenticated
router = APIRouter()


@router.post("/auth", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with login and password; return a fresh session token.

    Unknown login and wrong password produce the same 401 body. Store
    failures propagate to the StoreFailure handler (500).
    """
    auth_service: AuthService = request.app.state.auth_service
    ip = client_ip(request)
    try:
        token = auth_service.login(body.login, body.password, client_ip=ip)
    except InvalidCredentials as exc:
        logger.warning("Failed login: login=%r ip=%s reason=%s", body.login[:64], ip, exc)
        resp = JSONResponse(
            status_code=InvalidCredentials.status_code,
            content=ErrorResponse(error=InvalidCredentials.public_message).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    logger.info("User logged in: login=%r ip=%s", body.login, ip)
    resp = JSONResponse(status_code=200, content=LoginResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp
