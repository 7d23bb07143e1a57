import datetime as dt
from typing import List

from PIL import UnidentifiedImageError
from fastapi import APIRouter, UploadFile, File, Form, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.config import config
from photoshare.db.models.photo import Photo
from photoshare.db.session import get_db
from photoshare.services.auth_service import AuthService, Caller
from photoshare.services.catalog_service import AlreadyVoted, CatalogService, PhotoList, PhotoDetail
from photoshare.services.storage_service import StorageService, UnsupportedContentType
from photoshare.utils.files import read_file_from_upload_file, verify_image_bytes, FileTooLargeError
from photoshare.utils.tags import parse_taglist, normalize_tags

router = APIRouter(prefix="/api/photos", tags=["photos"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PhotoOut(CamelModel):
    id: int
    owner_id: int
    created_at: dt.datetime
    title: str
    photo: str
    tags: List[str] = []
    up_votes: int
    down_votes: int


class PhotoListOut(CamelModel):
    photos: List[PhotoOut]
    total: int
    current_page: int
    num_pages: int


class PermissionsOut(CamelModel):
    edit: bool
    delete: bool
    vote: bool


class PhotoDetailOut(PhotoOut):
    owner_name: str
    perms: PermissionsOut


class TitleUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class TagsUpdate(BaseModel):
    tags: List[str] = []


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def to_list_out(photos: PhotoList) -> PhotoListOut:
    return PhotoListOut.model_validate(photos)


def to_detail_out(detail: PhotoDetail) -> PhotoDetailOut:
    return PhotoDetailOut(
        **PhotoOut.model_validate(detail.photo).model_dump(),
        owner_name=detail.owner_name,
        perms=PermissionsOut.model_validate(detail.permissions),
    )


async def get_photo_or_404(photo_id: int, catalog: CatalogService) -> Photo:
    photo = await catalog.get(photo_id)
    if photo is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Photo not found.")
    return photo


@router.get("/", response_model=PhotoListOut, status_code=status.HTTP_200_OK)
async def get_photos(
    page: int = Query(1),
    order_by: str = Query("", alias="orderBy"),
    catalog: CatalogService = Depends(get_catalog),
):
    return to_list_out(await catalog.all(page, order_by))


@router.get("/search", response_model=PhotoListOut, status_code=status.HTTP_200_OK)
async def search_photos(
    q: str = Query(""),
    page: int = Query(1),
    catalog: CatalogService = Depends(get_catalog),
):
    return to_list_out(await catalog.search(page, q))


@router.get("/owner/{owner_id}", response_model=PhotoListOut, status_code=status.HTTP_200_OK)
async def photos_by_owner(
    owner_id: int,
    page: int = Query(1),
    catalog: CatalogService = Depends(get_catalog),
):
    return to_list_out(await catalog.by_owner_id(page, owner_id))


@router.get("/{photo_id}", response_model=PhotoDetailOut, status_code=status.HTTP_200_OK)
async def photo_detail(
    photo_id: int,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_optional_caller),
):
    detail = await catalog.get_detail(photo_id, caller)
    if detail is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Photo not found.")

    return to_detail_out(detail)


@router.post("/", response_model=PhotoOut, status_code=status.HTTP_201_CREATED)
async def upload(
    photo: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    taglist: str = Form(""),
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    if photo.content_type not in config.ALLOWED_MIME_TYPES:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail=f"File '{photo.filename}' has unsupported type '{photo.content_type}'.",
        )

    try:
        content = await read_file_from_upload_file(photo, config.MAX_FILE_SIZE)
        await verify_image_bytes(content)

    except FileTooLargeError as e:
        raise HTTPException(status.HTTP_413_CONTENT_TOO_LARGE, str(e)) from e

    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            f"Failed to read image: {e}. The file may be corrupted."
        ) from e

    storage = StorageService.get_instance()
    try:
        filename = await storage.store(content, photo.filename, photo.content_type)
    except UnsupportedContentType as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e)) from e

    new_photo = Photo(owner_id=caller.id, title=title, photo=filename, tags=parse_taglist(taglist))
    try:
        await catalog.insert(new_photo)

    except Exception as e:
        await storage.remove(filename)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR) from e

    return PhotoOut.model_validate(new_photo)


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: int,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    photo = await get_photo_or_404(photo_id, catalog)
    if not photo.can_delete(caller):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You are not allowed to delete this photo.")

    await catalog.delete(photo)


@router.patch("/{photo_id}/title", status_code=status.HTTP_200_OK)
async def edit_photo_title(
    photo_id: int,
    body: TitleUpdate,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    photo = await get_photo_or_404(photo_id, catalog)
    if not photo.can_edit(caller):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You are not allowed to edit this photo.")

    photo.title = body.title
    await catalog.update(photo)
    return {"title": photo.title}


@router.patch("/{photo_id}/tags", status_code=status.HTTP_200_OK)
async def edit_photo_tags(
    photo_id: int,
    body: TagsUpdate,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    photo = await get_photo_or_404(photo_id, catalog)
    if not photo.can_edit(caller):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You are not allowed to edit this photo.")

    photo.tags = body.tags
    await catalog.update_tags(photo)
    return {"tags": normalize_tags(body.tags)}


async def vote(photo_id: int, delta: int, catalog: CatalogService, caller: Caller) -> dict:
    photo = await get_photo_or_404(photo_id, catalog)
    if not photo.can_vote(caller):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You cannot vote on this photo.")

    try:
        photo = await catalog.vote(photo, caller.id, up=delta > 0)
    except AlreadyVoted as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You cannot vote on this photo.") from e

    return {"upVotes": photo.up_votes, "downVotes": photo.down_votes}


@router.patch("/{photo_id}/upvote", status_code=status.HTTP_200_OK)
async def upvote(
    photo_id: int,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    return await vote(photo_id, 1, catalog, caller)


@router.patch("/{photo_id}/downvote", status_code=status.HTTP_200_OK)
async def downvote(
    photo_id: int,
    catalog: CatalogService = Depends(get_catalog),
    caller: Caller = Depends(AuthService.get_current_caller),
):
    return await vote(photo_id, -1, catalog, caller)
