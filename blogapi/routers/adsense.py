from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import require_super_admin
from blogapi.schemas import AdSenseConfigResponse, AdSenseConfigUpdate, PublicAdSenseConfig
from blogapi.services import adsense_service

router = APIRouter(prefix="/api/v1/adsense", tags=["adsense"])


@router.get(
    "/config",
    response_model=AdSenseConfigResponse | None,
    dependencies=[Depends(require_super_admin)],
)
async def get_config(db: AsyncSession = Depends(get_db)):
    return await adsense_service.get_config(db)


@router.put(
    "/config",
    response_model=AdSenseConfigResponse,
    dependencies=[Depends(require_super_admin)],
)
async def update_config(data: AdSenseConfigUpdate, db: AsyncSession = Depends(get_db)):
    return await adsense_service.update_config(db, data)


@router.get("/public", response_model=PublicAdSenseConfig | None)
async def get_public_config(db: AsyncSession = Depends(get_db)):
    return await adsense_service.get_public_config(db)
