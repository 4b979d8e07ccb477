"""
Public Endpoints
College list for the registration form
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from membership.schemas.college import PublicCollegeResponse
from membership.services import Services, get_services

router = APIRouter()


class PublicCollegeListResponse(BaseModel):
    total: int
    colleges: list[PublicCollegeResponse]


@router.get("/colleges", response_model=PublicCollegeListResponse)
async def list_public_colleges(services: Services = Depends(get_services)):
    """List all active colleges (public)"""
    colleges, total = await services.colleges.list_colleges(active_only=True)
    return {
        "total": total,
        "colleges": [PublicCollegeResponse(**college.model_dump()) for college in colleges],
    }
