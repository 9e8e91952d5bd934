# app/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.problem import make_problem

logger = logging.getLogger("shipfee.http")


def _new_trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _ctx(req: Request) -> Dict[str, Any]:
    return {"path": getattr(req.url, "path", ""), "method": req.method}


def _problem_from_http_exc(req: Request, exc: StarletteHTTPException) -> Dict[str, Any]:
    """
    Translate HTTPException.detail into the Problem shape. Accepted detail forms:
    - already a Problem dict {"error_code","message",...}
    - list (validation-style entries)
    - str / anything else
    """
    status_code = int(exc.status_code)
    trace_id = _new_trace_id()
    ctx = _ctx(req)

    d = exc.detail

    if isinstance(d, dict) and "error_code" in d and "message" in d:
        out = dict(d)
        out.setdefault("http_status", status_code)
        out.setdefault("trace_id", trace_id)
        if isinstance(out.get("context"), dict):
            merged = dict(ctx)
            merged.update(out["context"])
            out["context"] = merged
        else:
            out["context"] = ctx
        return out

    if isinstance(d, list):
        details: List[Dict[str, Any]] = []
        for i, e in enumerate(d):
            reason = str(e.get("msg") or e.get("type") or "invalid") if isinstance(e, dict) else str(e)
            details.append({"type": "validation", "path": f"validation[{i}]", "reason": reason})
        return make_problem(
            status_code=status_code,
            error_code="request_validation_error",
            message="Invalid request parameters",
            context=ctx,
            details=details,
            trace_id=trace_id,
        )

    msg = str(d) if d is not None else "Request rejected"
    return make_problem(
        status_code=status_code,
        error_code="http_error",
        message=msg,
        context=ctx,
        details=[{"type": "state", "reason": msg}],
        trace_id=trace_id,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = _new_trace_id()
        logger.exception("UNHANDLED_EXC[%s]: %s", trace_id, exc)
        content = make_problem(
            status_code=500,
            error_code="internal_error",
            message="Internal server error, please retry later",
            context=_ctx(req),
            trace_id=trace_id,
        )
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        details: List[Dict[str, Any]] = []
        for e in exc.errors():
            if not isinstance(e, dict):
                continue
            loc = ".".join(str(x) for x in (e.get("loc") or ()) if x != "body")
            details.append(
                {
                    "type": "validation",
                    "path": loc or "body",
                    "reason": str(e.get("msg") or e.get("type") or "invalid"),
                }
            )

        content = make_problem(
            status_code=422,
            error_code="request_validation_error",
            message="Invalid request parameters",
            context=_ctx(req),
            details=details,
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc(req: Request, exc: StarletteHTTPException):
        content = _problem_from_http_exc(req, exc)
        return JSONResponse(status_code=int(exc.status_code), content=content, headers=getattr(exc, "headers", None))

