from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import Response


def mount_artifact(app: FastAPI) -> None:
    @app.get("/api/artifact")
    async def download_artifact(request: Request) -> Response:
        export = request.app.state.session.export_binary()
        return Response(
            content=export.payload,
            media_type=export.media_type,
            headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        )
