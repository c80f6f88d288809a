"""GitHub webhook receiver."""

from __future__ import annotations

import hashlib
import hmac
import json

import pydantic
import structlog
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from classbot.api.deps import get_dispatcher, get_webhook_secret
from classbot.api.schemas.webhook import WebhookAck
from classbot.config.loader import ConfigError
from classbot.dispatcher import SUPPORTED_EVENTS, EventDispatcher
from classbot.services import AuthenticationError, ValidationError

log = structlog.get_logger("classbot.api")

router = APIRouter()


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Check ``X-Hub-Signature-256`` (``sha256=<hex hmac of body>``)."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


@router.post("/github", response_model=WebhookAck)
async def receive_github_webhook(
    request: Request,
    x_github_event: str = Header(...),
    x_github_delivery: str | None = Header(None),
    x_hub_signature_256: str | None = Header(None),
    secret: str | None = Depends(get_webhook_secret),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    body = await request.body()
    if secret is not None and not verify_signature(secret, body, x_hub_signature_256):
        raise AuthenticationError("invalid webhook signature")

    structlog.contextvars.bind_contextvars(
        delivery=x_github_delivery, github_event=x_github_event
    )

    if x_github_event not in SUPPORTED_EVENTS:
        log.info("webhook.ignored")
        ack = WebhookAck(event=x_github_event, delivery=x_github_delivery, components=[])
        return JSONResponse(status_code=202, content=ack.model_dump())

    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError(f"webhook body is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("webhook body must be a JSON object")

    try:
        components = await dispatcher.dispatch(x_github_event, payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"unexpected {x_github_event} payload: {exc}") from exc
    except ConfigError:
        raise
    except Exception:
        log.exception("webhook.failed")
        return JSONResponse(status_code=500, content={"detail": "event processing failed"})

    return WebhookAck(event=x_github_event, delivery=x_github_delivery, components=components)
