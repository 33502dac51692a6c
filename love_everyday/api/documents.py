"""REST endpoints that write family documents.

Paths:
    PUT   /api/families/{family_code}/document
    PATCH /api/families/{family_code}/document
    POST  /api/families/{family_code}/heartbeat

These stand in for the phone app writing to the cloud document store.
Writes fan out to subscribed monitors through the repository.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from love_everyday.store.family_repository import FamilyNotFoundError, InMemoryFamilyRepository

logger = logging.getLogger(__name__)


def create_document_router(repository: InMemoryFamilyRepository) -> APIRouter:
    """Factory that wires the document endpoints to a concrete repository."""

    router = APIRouter(prefix="/api/families", tags=["documents"])

    @router.put("/{family_code}/document")
    async def put_document(
        family_code: str,
        document: dict[str, Any] = Body(...),
    ) -> dict[str, Any]:
        await repository.put(family_code, document)
        return {"status": "stored", "family_code": family_code}

    @router.patch("/{family_code}/document")
    async def update_document(
        family_code: str,
        fields: dict[str, Any] = Body(..., description="Dotted-path field updates"),
    ) -> dict[str, Any]:
        try:
            await repository.update(family_code, fields)
        except FamilyNotFoundError:
            raise HTTPException(status_code=404, detail=f"Family {family_code} not found")
        return {"status": "updated", "family_code": family_code, "fields": sorted(fields)}

    @router.post("/{family_code}/heartbeat")
    async def heartbeat(family_code: str) -> dict[str, Any]:
        """Record phone activity "now" for the family."""
        try:
            at = await repository.touch_activity(family_code)
        except FamilyNotFoundError:
            raise HTTPException(status_code=404, detail=f"Family {family_code} not found")
        return {"status": "accepted", "last_phone_activity": at.isoformat()}

    return router
