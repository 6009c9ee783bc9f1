"""
Operation audit middleware.

Writes one JSON line per mutating file request to the audit log, without
touching the route handlers.
"""

import json
import logging
import logging.handlers
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings


class OperationAuditMiddleware(BaseHTTPMiddleware):
    """Audits POST requests to the file operation endpoints"""

    AUDIT_METHODS = {"POST"}

    AUDIT_OPERATIONS = {
        "/upload",
        "/create-folder",
        "/create-file",
        "/file-content",
        "/delete",
        "/copy",
        "/move",
        "/rename",
        "/decompress",
        "/categorize",
    }

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self._setup_logger()

    def _setup_logger(self):
        if not settings.audit.enabled:
            self.logger = None
            return

        logs_dir = Path(settings.logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger("filebox.audit")
        self.logger.setLevel(logging.INFO)

        if not self.logger.handlers:
            file_handler = logging.handlers.TimedRotatingFileHandler(
                logs_dir / settings.audit.log_file, when="midnight", encoding="utf-8"
            )
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(file_handler)

            # Audit lines stay out of the application log
            self.logger.propagate = False

    def _should_audit_request(self, request: Request) -> bool:
        if not settings.audit.enabled or not self.logger:
            return False
        if request.method.upper() not in self.AUDIT_METHODS:
            return False
        return any(request.url.path.endswith(op) for op in self.AUDIT_OPERATIONS)

    async def _read_request_body(self, request: Request) -> Optional[Dict[str, Any]]:
        if not settings.audit.log_request_body:
            return None

        # Raw upload bodies are streamed to disk and must not be buffered here
        if not request.headers.get("content-type", "").startswith("application/json"):
            return None

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > settings.audit.max_body_size:
                return {"error": "Request body too large for logging"}

        try:
            body_bytes = await request.body()
        except Exception as e:
            return {"error": f"Failed to read request body: {e}"}

        if not body_bytes:
            return None
        if len(body_bytes) > settings.audit.max_body_size:
            return {"error": "Request body too large for logging"}

        try:
            return json.loads(body_bytes.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {"raw_body": body_bytes.decode("utf-8", errors="replace")}

    def _get_client_ip(self, request: Request) -> Optional[str]:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return None

    def _create_log_entry(
        self,
        request: Request,
        response: Response,
        request_body: Optional[Dict[str, Any]],
        processing_time: float,
    ) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "processing_time_ms": round(processing_time * 1000, 2),
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("user-agent"),
        }

        if request.query_params:
            log_data["query_params"] = dict(request.query_params)
        if request_body:
            log_data["request_body"] = request_body

        log_data["success"] = 200 <= response.status_code < 400
        return json.dumps(log_data, ensure_ascii=False)

    async def dispatch(self, request: Request, call_next):
        if not self._should_audit_request(request):
            return await call_next(request)

        start_time = time.perf_counter()
        request_body = await self._read_request_body(request)

        try:
            response = await call_next(request)
        except Exception:
            error_response = JSONResponse(
                status_code=500, content={"message": "Internal Server Error"}
            )
            if self.logger:
                self.logger.info(
                    self._create_log_entry(
                        request,
                        error_response,
                        request_body,
                        time.perf_counter() - start_time,
                    )
                )
            raise

        if self.logger:
            self.logger.info(
                self._create_log_entry(
                    request, response, request_body, time.perf_counter() - start_time
                )
            )
        return response
