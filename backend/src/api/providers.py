"""
Provider API endpoints.

Creating a provider also seeds the default weekly template (Monday-Friday
09:00-17:00) and default booking policy.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import ProviderResponse, provider_response
from core.constants import MAX_STRING_LENGTH
from core.database import get_db
from services import AvailabilitySettingsService

logger = logging.getLogger(__name__)

router = APIRouter()


class ProviderCreateRequest(BaseModel):
    """Request model for creating a provider."""
    name: str = Field(min_length=1, max_length=MAX_STRING_LENGTH)
    email: Optional[str] = Field(default=None, max_length=MAX_STRING_LENGTH)


@router.post("/providers",
             summary="Create a provider",
             status_code=status.HTTP_201_CREATED)
async def create_provider(
    request: ProviderCreateRequest,
    db: Session = Depends(get_db)
) -> ProviderResponse:
    """Create a provider with default availability settings."""
    try:
        provider = AvailabilitySettingsService.create_provider(db, request.name.strip(), request.email)
        return provider_response(provider)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to create provider: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create provider"
        )


@router.get("/providers/{provider_id}",
            summary="Get a provider")
async def get_provider(
    provider_id: int,
    db: Session = Depends(get_db)
) -> ProviderResponse:
    """Get provider information."""
    try:
        provider = AvailabilitySettingsService.get_provider(db, provider_id)
        return provider_response(provider)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to fetch provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch provider"
        )
