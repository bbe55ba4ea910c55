from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from userapi.domain.filters import FilterParseError
from userapi.domain.users import ValidationError, user_to_payload
from userapi.repositories.base import ConflictError, NotFoundError, StorageError
from userapi.services.user_service import UserService

router = APIRouter(prefix="/v1/user", tags=["users"])
logger = logging.getLogger(__name__)


def _get_user_service(request: Request) -> UserService:
    svc = getattr(getattr(request.app, "state", None), "user_service", None)
    if not svc:
        raise RuntimeError("UserService not configured")
    return svc


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": code, "message": message}, status_code=status_code)


def _storage_error_response(exc: StorageError, request: Request) -> JSONResponse:
    if isinstance(exc, ConflictError):
        return _error_response(409, "conflict", "user with the same .email already exists")
    if isinstance(exc, NotFoundError):
        return _error_response(404, "not_found", "user not found")
    request_id = getattr(request.state, "request_id", "-")
    logger.error("request %s: storage failure: %s (cause: %r)", request_id, exc, exc.cause)
    return _error_response(500, "internal", "Internal Server Error")


def _location(email: str) -> str:
    return f"{router.prefix}/{quote(email, safe='@')}"


def _first_values(params) -> dict[str, str]:
    # A repeated parameter counts by its first occurrence.
    return {key: params.getlist(key)[0] for key in params.keys()}


async def _read_payload(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("body", "request body is not valid JSON") from None


@router.get("")
def list_users(request: Request):
    svc = _get_user_service(request)
    try:
        users = svc.list_users(_first_values(request.query_params))
    except FilterParseError as exc:
        return _error_response(400, "invalid", exc.message)
    except StorageError as exc:
        return _storage_error_response(exc, request)
    return JSONResponse([user_to_payload(u) for u in users])


@router.get("/{email}")
def get_user(email: str, request: Request):
    svc = _get_user_service(request)
    try:
        user = svc.get_user(email)
    except StorageError as exc:
        return _storage_error_response(exc, request)
    if user is None:
        return _error_response(404, "not_found", "user not found")
    return JSONResponse(user_to_payload(user))


@router.post("")
async def create_user(request: Request):
    svc = _get_user_service(request)
    try:
        payload = await _read_payload(request)
        user = await run_in_threadpool(svc.create_user, payload)
    except ValidationError as exc:
        return _error_response(400, "invalid", exc.message)
    except StorageError as exc:
        return _storage_error_response(exc, request)
    return Response(status_code=204, headers={"Location": _location(user.email)})


@router.put("/{email}")
async def modify_user(email: str, request: Request):
    svc = _get_user_service(request)
    try:
        payload = await _read_payload(request)
        await run_in_threadpool(svc.modify_user, email, payload)
    except ValidationError as exc:
        return _error_response(400, "invalid", exc.message)
    except StorageError as exc:
        return _storage_error_response(exc, request)
    return Response(status_code=204)


@router.delete("/{email}")
def delete_user(email: str, request: Request):
    svc = _get_user_service(request)
    try:
        svc.delete_user(email)
    except StorageError as exc:
        return _storage_error_response(exc, request)
    return Response(status_code=204)
