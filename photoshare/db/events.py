import datetime as dt

from sqlalchemy import event, Connection
from sqlalchemy.orm import Mapper

from photoshare.db.models.photo import Photo
from photoshare.services.storage_service import StorageService


@event.listens_for(Photo, "before_insert")
def stamp_created_at(_mapper: Mapper, _connection: Connection, target: Photo):
    target.created_at = dt.datetime.now(dt.timezone.utc)


@event.listens_for(Photo, "after_delete")
def schedule_photo_cleanup(_mapper: Mapper, _connection: Connection, target: Photo):
    StorageService.get_instance().schedule_cleanup(target.photo)
