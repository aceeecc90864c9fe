# OhMyFix
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of OhMyFix.
#
# OhMyFix is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""
OhMyFix -- API Server

Run with: ohmyfix serve
      or: uvicorn ohmyfix.api.server:app --port 8765
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from ohmyfix._version import __version__
from ohmyfix.api._shared import _get_fix_log, logger


# =============================================================================
# HTTP REQUEST LOGGING MIDDLEWARE
# =============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status, and latency."""
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        latency_ms = int((time.time() - start) * 1000)
        log = _get_fix_log()
        if log:
            path = request.url.path
            if path not in ("/health", "/ready"):
                log.http_request(
                    method=request.method,
                    path=path,
                    status=response.status_code,
                    latency_ms=latency_ms,
                )
        return response


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app() -> FastAPI:
    from ohmyfix.api.routes import health, review, settings

    app = FastAPI(
        title="OhMyFix API",
        description="Parse model replies and apply approved fixes over HTTP",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(review.router)
    app.include_router(settings.router)
    return app


app = create_app()


def run_server(host: str = "127.0.0.1", port: int = 8765):
    import uvicorn

    log = _get_fix_log()
    if log:
        log.server_start(host=host, port=port, version=__version__)
    logger.info(f"Starting OhMyFix API on http://{host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port)
    finally:
        if log:
            log.server_stop()


if __name__ == "__main__":
    run_server()
