from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from owtracker import __version__
from owtracker.analyzer import DashboardAnalyzer
from owtracker.config import Settings, configure_logging, load_settings, resolve_path
from owtracker.constants import QUEUES, RANK_OPTIONS, ROLE_CHARACTERS, ROLES
from owtracker.database import Database
from owtracker.normalizer import ValidationError
from owtracker.plugins import PlayerBreakdownPlugin
from owtracker.scratchpad import ScratchpadService, upload_too_large
from owtracker.seasons import order_season_labels, resolve_season, season_calendar
from owtracker.tracker_service import TrackerService

logger = logging.getLogger("owtracker.web")


async def _read_json(request: Request) -> object:
    try:
        return await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")


def _store_failure(action: str, error: Exception) -> HTTPException:
    logger.exception("Failed to %s: %s", action, error)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


def create_app(settings: Settings | None = None, db: Database | None = None) -> FastAPI:
    settings = settings or load_settings()
    db = db or Database(settings.db_path)
    service = TrackerService(db)
    scratchpad = ScratchpadService(db, settings.upload_dir)
    roster = list(settings.players)

    app = FastAPI(title="owtracker", version=__version__)
    app.state.settings = settings
    app.state.db = db
    app.state.service = service
    app.state.scratchpad = scratchpad
    print(f"[DB] Using database at: {os.path.abspath(db.db_path)}")

    # --- Meta ---

    @app.get("/api/health")
    async def health() -> dict:
        return {"ok": True, "version": __version__, "matches": db.match_count()}

    @app.get("/api/config")
    async def config() -> dict:
        return {
            "players": roster,
            "roles": list(ROLES),
            "queues": list(QUEUES),
            "rank_options": {queue: list(ranks) for queue, ranks in RANK_OPTIONS.items()},
            "role_characters": {role: list(chars) for role, chars in ROLE_CHARACTERS.items()},
        }

    @app.get("/api/seasons")
    async def seasons() -> dict:
        return {
            "current": resolve_season(),
            "seasons": season_calendar(),
            "recorded": order_season_labels(db.get_match_seasons()),
        }

    # --- Matches ---

    @app.get("/api/matches")
    async def list_matches(season: str | None = None) -> list:
        try:
            return service.list_matches(season=season)
        except RuntimeError as e:
            raise _store_failure("load matches", e)

    @app.get("/api/matches/export")
    async def export_matches() -> JSONResponse:
        try:
            payload = service.export_payload()
        except RuntimeError as e:
            raise _store_failure("export matches", e)
        return JSONResponse(
            content=payload,
            headers={"Content-Disposition": 'attachment; filename="matches-export.json"'},
        )

    @app.post("/api/matches", status_code=201)
    async def save_match(request: Request) -> dict:
        payload = await _read_json(request)
        try:
            return service.save_match(payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("save match", e)

    @app.post("/api/matches/import")
    async def import_matches(request: Request) -> dict:
        payload = await _read_json(request)
        try:
            return service.import_payload(payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("import matches", e)

    @app.delete("/api/matches")
    async def delete_all_matches() -> dict:
        try:
            return {"deleted": service.delete_all_matches()}
        except RuntimeError as e:
            raise _store_failure("delete matches", e)

    @app.delete("/api/matches/{match_id}", status_code=204)
    async def delete_match(match_id: str) -> Response:
        try:
            removed = service.delete_match(match_id)
        except RuntimeError as e:
            raise _store_failure("delete match", e)
        if not removed:
            raise HTTPException(status_code=404, detail="Match not found")
        return Response(status_code=204)

    # --- Statistics ---

    @app.get("/api/stats")
    async def stats(role: str | None = None, season: str | None = None) -> dict:
        if role and role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role '{role}'")
        try:
            matches = service.list_matches()
        except RuntimeError as e:
            raise _store_failure("load matches", e)
        return DashboardAnalyzer(matches, roster=roster, role_filter=role, season=season).analyze()

    @app.get("/api/stats/players/{name}/matches")
    async def player_matches(
        name: str, role: str | None = None, sort: str = "date", direction: str = "desc"
    ) -> dict:
        if name not in roster:
            raise HTTPException(status_code=404, detail="Player not found")
        if role and role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role '{role}'")
        try:
            matches = service.list_matches()
        except RuntimeError as e:
            raise _store_failure("load matches", e)
        try:
            rows = PlayerBreakdownPlugin(matches, roster=roster, role_filter=role).match_history(
                name, sort_key=sort, direction=direction
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"player": name, "matches": rows, "count": len(rows)}

    # --- Improvement tickets ---

    @app.get("/api/improvements")
    async def list_improvements() -> list:
        try:
            return service.list_improvements()
        except RuntimeError as e:
            raise _store_failure("load improvements", e)

    @app.post("/api/improvements", status_code=201)
    async def save_improvement(request: Request) -> dict:
        payload = await _read_json(request)
        try:
            return service.save_improvement(payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("save improvement", e)

    @app.patch("/api/improvements/{ticket_id}")
    async def update_improvement(ticket_id: str, request: Request) -> dict:
        payload = await _read_json(request)
        if not isinstance(payload, dict) or "completed" not in payload:
            raise HTTPException(status_code=400, detail="completed is required")
        try:
            ticket = service.set_improvement_completed(ticket_id, payload.get("completed"))
        except RuntimeError as e:
            raise _store_failure("update improvement", e)
        if ticket is None:
            raise HTTPException(status_code=404, detail="Improvement not found")
        return ticket

    @app.delete("/api/improvements")
    async def delete_all_improvements() -> dict:
        try:
            return {"deleted": service.delete_all_improvements()}
        except RuntimeError as e:
            raise _store_failure("delete improvements", e)

    @app.delete("/api/improvements/{ticket_id}", status_code=204)
    async def delete_improvement(ticket_id: str) -> Response:
        try:
            removed = service.delete_improvement(ticket_id)
        except RuntimeError as e:
            raise _store_failure("delete improvement", e)
        if not removed:
            raise HTTPException(status_code=404, detail="Improvement not found")
        return Response(status_code=204)

    # --- Archive links ---

    @app.get("/api/archive-links")
    async def list_archive_links() -> list:
        try:
            return service.list_archive_links()
        except RuntimeError as e:
            raise _store_failure("load archive links", e)

    @app.post("/api/archive-links", status_code=201)
    async def save_archive_link(request: Request) -> dict:
        payload = await _read_json(request)
        try:
            return service.save_archive_link(payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("save archive link", e)

    @app.delete("/api/archive-links")
    async def delete_all_archive_links() -> dict:
        try:
            return {"deleted": service.delete_all_archive_links()}
        except RuntimeError as e:
            raise _store_failure("delete archive links", e)

    @app.delete("/api/archive-links/{link_id}", status_code=204)
    async def delete_archive_link(link_id: str) -> Response:
        try:
            removed = service.delete_archive_link(link_id)
        except RuntimeError as e:
            raise _store_failure("delete archive link", e)
        if not removed:
            raise HTTPException(status_code=404, detail="Archive link not found")
        return Response(status_code=204)

    # --- Player ranks ---

    @app.get("/api/player-ranks")
    async def list_player_ranks(season: str | None = None) -> list:
        try:
            return service.list_player_ranks(season)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("load player ranks", e)

    @app.put("/api/player-ranks")
    async def save_player_rank(request: Request) -> dict:
        payload = await _read_json(request)
        try:
            return service.save_player_rank(payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("save player rank", e)

    @app.delete("/api/player-ranks")
    async def delete_all_player_ranks() -> dict:
        try:
            return {"deleted": service.delete_all_player_ranks()}
        except RuntimeError as e:
            raise _store_failure("delete player ranks", e)

    # --- Scratchpad ---

    @app.get("/api/tra")
    async def get_scratchpad() -> dict:
        return scratchpad.get_text()

    @app.put("/api/tra")
    async def save_scratchpad(request: Request) -> dict:
        payload = await _read_json(request)
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="content is required")
        try:
            return scratchpad.save_text(payload.get("content"))
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("save scratchpad", e)

    @app.get("/api/files")
    async def list_files() -> list:
        return scratchpad.list_files()

    @app.post("/api/files", status_code=201)
    async def upload_files(request: Request) -> list:
        # Checked before the multipart body is read.
        if upload_too_large(request.headers.get("content-length")):
            raise HTTPException(status_code=413, detail="Upload too large")
        form = await request.form()
        try:
            parts = [part for part in form.getlist("files") if not isinstance(part, str)]
            paths = [str(path) for path in form.getlist("relative_path")]
            uploads = []
            for index, part in enumerate(parts):
                rel_path = paths[index] if index < len(paths) else part.filename
                uploads.append((part.filename, await part.read(), rel_path, part.content_type))
        finally:
            await form.close()
        try:
            return scratchpad.upload_files(uploads)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            raise _store_failure("store files", e)

    @app.get("/api/files/{file_id}")
    async def download_file(file_id: int) -> FileResponse:
        found = scratchpad.open_file(file_id)
        if not found:
            raise HTTPException(status_code=404, detail="File not found")
        record, path = found
        return FileResponse(path, media_type=record["content_type"], filename=record["filename"])

    @app.delete("/api/files/{file_id}", status_code=204)
    async def delete_file(file_id: int) -> Response:
        if not scratchpad.delete_file(file_id):
            raise HTTPException(status_code=404, detail="File not found")
        return Response(status_code=204)

    @app.delete("/api/files")
    async def delete_all_files() -> dict:
        return {"deleted": scratchpad.delete_all_files()}

    @app.get("/api/files-download")
    async def download_all_files() -> Response:
        return Response(
            content=scratchpad.build_archive(),
            media_type="application/zip",
            headers={"Content-Disposition": 'attachment; filename="tra-files.zip"'},
        )

    # --- Frontend ---

    frontend_dist = resolve_path(settings.frontend_dist)
    if os.path.isfile(os.path.join(frontend_dist, "index.html")):
        app.mount("/owtracker", StaticFiles(directory=frontend_dist, html=True), name="frontend")

        @app.get("/")
        async def root() -> RedirectResponse:
            return RedirectResponse(url="/owtracker/")

        print(f"[WEB] Serving frontend from: {frontend_dist}")
    else:
        print(f"[WEB] Warning: frontend build not found under {frontend_dist}; serving API only")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
