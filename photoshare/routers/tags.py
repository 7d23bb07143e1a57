from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.db.session import get_db
from photoshare.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/tags", tags=["tags"])


class TagCountOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    name: str
    photo: str
    num_photos: int


@router.get("/", response_model=List[TagCountOut], status_code=status.HTTP_200_OK)
async def get_tags(db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).get_tag_counts()
