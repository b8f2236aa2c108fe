from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from compilepad.core.models import CompileMode, OutputType
from compilepad.core.session import CompileSession


class SourceBody(BaseModel):
    text: str


class CompileBody(BaseModel):
    mode: CompileMode | None = Field(default=None, description="Defaults to the session's mode")


class ModeBody(BaseModel):
    mode: CompileMode


class OptionBody(BaseModel):
    value: bool


class CompilerBody(BaseModel):
    compiler: str = Field(..., min_length=1)


def _session(request: Request) -> CompileSession:
    return request.app.state.session


def mount_session(app: FastAPI) -> None:
    @app.get("/api/state")
    async def get_state(request: Request) -> dict[str, Any]:
        return _session(request).snapshot()

    @app.post("/api/source")
    async def post_source(request: Request, body: SourceBody) -> dict[str, Any]:
        session = _session(request)
        scheduled = session.on_input_change(body.text)
        return {"scheduled": scheduled, "state": session.snapshot()}

    @app.post("/api/compile")
    async def post_compile(request: Request, body: CompileBody | None = None) -> dict[str, Any]:
        session = _session(request)
        await session.on_compile_click(body.mode if body else None)
        return session.snapshot()

    @app.put("/api/compile-mode")
    async def put_compile_mode(request: Request, body: ModeBody) -> dict[str, Any]:
        session = _session(request)
        session.on_compile_mode_change(body.mode)
        return session.snapshot()

    @app.put("/api/settings/{key}")
    async def put_setting(request: Request, key: str, body: OptionBody) -> dict[str, Any]:
        session = _session(request)
        if not await session.on_settings_option_change(key, body.value):
            raise HTTPException(status_code=409, detail="compiler not ready")
        return session.snapshot()

    @app.put("/api/compiler")
    async def put_compiler(request: Request, body: CompilerBody) -> dict[str, Any]:
        session = _session(request)
        available = await session.on_compiler_change(body.compiler)
        return {"available": available, "state": session.snapshot()}

    @app.delete("/api/notifications/{key}")
    async def delete_notification(request: Request, key: int) -> dict[str, Any]:
        session = _session(request)
        removed = session.dismiss_notification(key)
        return {"removed": removed, "notifications": [n.to_dict() for n in session.notifications]}

    @app.get("/api/output")
    async def get_output(
        request: Request, output_type: OutputType | None = Query(default=None, alias="type")
    ) -> dict[str, Any]:
        session = _session(request)
        if output_type is not None:
            session.on_output_select(output_type)
        return {
            "type": session.state.output_type.value,
            "output": session.rendered_output(),
            "binary_size": session.binary_size,
        }
