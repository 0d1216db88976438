import logging
from typing import Dict, List, Optional

from aiohttp import web
from pydantic import BaseModel, ConfigDict, ValidationError

from deadlock_graph.core.detector import CycleDetector, GraphValidationError
from deadlock_graph.utils.config import Settings, settings

log = logging.getLogger(__name__)


class CheckRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    graph: Dict[str, List[str]]


def bad_request(error: str, detail: str) -> web.Response:
    return web.json_response({"ok": False, "error": error, "detail": detail}, status=400)


async def create_app(cfg: Optional[Settings] = None) -> web.Application:
    cfg = cfg or settings
    detector = CycleDetector()

    def cors_headers(resp: web.StreamResponse) -> web.StreamResponse:
        resp.headers["Access-Control-Allow-Origin"] = cfg.cors_allow_origin
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return resp

    @web.middleware
    async def cors(request: web.Request, handler) -> web.StreamResponse:
        if request.method == "OPTIONS":
            return cors_headers(web.Response(status=204))
        return cors_headers(await handler(request))

    app = web.Application(middlewares=[cors])

    async def index(_: web.Request) -> web.Response:
        return web.Response(text="Server Running")

    async def health(_: web.Request) -> web.Response:
        return web.json_response({"ok": True, "app_env": cfg.app_env})

    async def check(request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except ValueError as e:
            return bad_request("invalid_json", str(e))

        try:
            req = CheckRequest.model_validate(body)
        except ValidationError as e:
            log.info("CHECK: rejected payload errors=%d", e.error_count())
            return bad_request("invalid_graph", str(e))

        log.info("CHECK: graph received nodes=%d graph=%s", len(req.graph), req.graph)
        try:
            result = detector.detect(req.graph)
        except GraphValidationError as e:
            return bad_request("invalid_graph", str(e))

        log.info("CHECK: response deadlock=%s cycle=%s", result.deadlock, list(result.cycle))
        return web.json_response(result.to_dict())

    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    app.router.add_post("/check", check)

    log.info("APP: ready env=%s cors_origin=%s", cfg.app_env, cfg.cors_allow_origin)
    return app


def main() -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    web.run_app(create_app(), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
