"""Webhook acknowledgement schema."""

from __future__ import annotations

from pydantic import BaseModel


class WebhookAck(BaseModel):
    event: str
    delivery: str | None = None
    components: list[str]
