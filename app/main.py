"""FastAPI app exposing stack normalization, definition and composition."""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file(ROOT / "app" / ".env")

from stackkit.errors import StackError
from stackkit.issues import make_issue

from stack_compose import compose_stacks
from stack_define import define_stack
from stack_normalize import normalize_stack


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes")


LOG_LEVEL = os.getenv("STACKKIT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
DEFAULT_STRICT = _env_flag("STACKKIT_DEFAULT_STRICT", True)
DEFAULT_OBJECT_CONFLICT = os.getenv("STACKKIT_DEFAULT_OBJECT_CONFLICT", "").strip() or "error"
CORS_ORIGINS = sorted(
    {
        origin.strip().rstrip("/")
        for origin in os.getenv("STACKKIT_CORS_ORIGINS", "").split(",")
        if origin.strip()
    }
)

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger("stackkit.api")

app = FastAPI(title="Stack Engine")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("request method=%s path=%s status=%s ms=%.1f", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(RequestTimingMiddleware)


def _error_response(code: str, message: str, path: str | None = None, detail: dict | None = None, status: int = 400) -> JSONResponse:
    body = {
        "ok": False,
        "errors": [make_issue(code, message, path, detail)],
        "warnings": [],
    }
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _stack_error_response(exc: StackError, status: int = 400) -> JSONResponse:
    body = {
        "ok": False,
        "code": exc.code,
        "report": exc.report,
        "errors": exc.issues,
        "warnings": [],
    }
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _ok_response(payload: dict, warnings: list | None = None, status: int = 200) -> JSONResponse:
    body = {"ok": True, **payload, "errors": [], "warnings": warnings or []}
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _stack_payload(stack: dict) -> dict:
    return {"data": {"stack": stack}}


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


@app.post("/stacks/normalize")
async def stacks_normalize(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict) or not isinstance(body.get("stack"), dict):
        return _error_response("STACK_REQUIRED", "body.stack must be an object", "stack")
    try:
        normalized = normalize_stack(body["stack"])
    except StackError as exc:
        return _stack_error_response(exc)
    return _ok_response(_stack_payload(normalized))


@app.post("/stacks/define")
async def stacks_define(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict) or not isinstance(body.get("stack"), dict):
        return _error_response("STACK_REQUIRED", "body.stack must be an object", "stack")
    strict = body.get("strict", DEFAULT_STRICT)
    if not isinstance(strict, bool):
        return _error_response("FIELD_INVALID", "strict must be a boolean", "strict")
    try:
        stack = define_stack(body["stack"], strict=strict)
    except StackError as exc:
        logger.info("stack_define_rejected code=%s issues=%s", exc.code, len(exc.issues))
        return _stack_error_response(exc)
    warnings = [] if strict else [make_issue("STACK_UNCHECKED", "stack was normalized without validation", None)]
    return _ok_response(_stack_payload(stack), warnings=warnings)


@app.post("/stacks/compose")
async def stacks_compose(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        return _error_response("BODY_INVALID", "body must be an object", None)
    stacks = body.get("stacks")
    if not isinstance(stacks, list) or not all(isinstance(s, dict) for s in stacks):
        return _error_response("STACKS_REQUIRED", "body.stacks must be a list of objects", "stacks")
    options = body.get("options") or {}
    if not isinstance(options, dict):
        return _error_response("FIELD_INVALID", "options must be an object", "options")
    try:
        normalized = [normalize_stack(stack) for stack in stacks]
        composed = compose_stacks(
            normalized,
            object_conflict=options.get("objectConflict", DEFAULT_OBJECT_CONFLICT),
            manifest=options.get("manifest", "last"),
            namespace=options.get("namespace"),
        )
    except StackError as exc:
        logger.info("stack_compose_rejected code=%s issues=%s", exc.code, len(exc.issues))
        return _stack_error_response(exc, status=409 if exc.code == "STACK_COMPOSE_CONFLICT" else 400)
    warnings = [make_issue("STACK_UNCHECKED", "composed stack is not validated; call /stacks/define to check it", None)]
    return _ok_response(_stack_payload(composed), warnings=warnings)
