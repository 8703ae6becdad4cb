"""HTTP routes for the aspect ratio webhook."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ..exceptions import AppError, status_for
from .webhook_schemas import ErrorEnvelope, ProcessResult, SuccessEnvelope
from .webhook_service import WebhookService

router = APIRouter(prefix="/api", tags=["webhook"])
logger = logging.getLogger(__name__)

PROCESS_PATH = "/process-aspect-ratios"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Webhook-Signature",
}


def get_webhook_service(request: Request) -> WebhookService:
    """Fetch webhook service from application state."""
    try:
        return request.app.state.webhook_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("WebhookService is not configured") from exc


def envelope_response(envelope: BaseModel, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
    )


def error_response(message: str, status_code: int, *, code: str | None = None) -> JSONResponse:
    return envelope_response(
        ErrorEnvelope(error=message, code=code, status_code=status_code),
        status_code,
    )


@router.options(PROCESS_PATH, include_in_schema=False)
async def process_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.api_route(
    PROCESS_PATH,
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def process_method_not_allowed() -> JSONResponse:
    return error_response("Method not allowed", status.HTTP_405_METHOD_NOT_ALLOWED)


@router.post(PROCESS_PATH)
async def process_aspect_ratios(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
) -> JSONResponse:
    """Render and store the three aspect ratio variants of a character image."""
    content_length = request.headers.get("content-length")
    try:
        if content_length and content_length.isdigit():
            service.check_size(int(content_length))
        raw_body = await request.body()
        outcome = await service.handle(request.headers, raw_body)
    except AppError as exc:
        status_code = status_for(exc)
        logger.warning(
            "webhook.request.failed",
            extra={"kind": exc.kind.value, "status_code": status_code, "error": exc.message},
        )
        return error_response(exc.message, status_code, code=exc.kind.value)
    except Exception:
        logger.exception("webhook.unexpected_error")
        return error_response(
            "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR, code="internal"
        )

    return envelope_response(
        SuccessEnvelope(
            message="Aspect ratios processed successfully",
            data=ProcessResult.from_outcome(outcome).model_dump(mode="json", by_alias=True),
        ),
        status.HTTP_200_OK,
    )


@router.get("/test", tags=["system"])
async def liveness() -> JSONResponse:
    return envelope_response(
        SuccessEnvelope(message="Aspect Ratio Service is alive!"),
        status.HTTP_200_OK,
    )
