import argparse
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.db.models.photo import Photo
from photoshare.db.session import SessionLocal, init_db
from photoshare.services.auth_service import AuthService, UserNotFound
from photoshare.services.catalog_service import CatalogService
from photoshare.services.cleanup_service import CleanupWorker
from photoshare.services.storage_service import StorageService
from photoshare.utils.files import read_file

EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".png": "image/png",
}


@dataclass
class ImportTotals:
    found: int = 0
    imported: int = 0
    failed: int = 0


def scan_dir(base_dir: Path) -> Iterator[Tuple[Path, str, List[str]]]:
    # tags are the sub-directory names relative to base_dir
    for path in sorted(base_dir.rglob("*")):
        if not path.is_file():
            continue

        content_type = EXTENSION_CONTENT_TYPES.get(path.suffix.lower())
        if content_type is None:
            continue

        yield path, content_type, list(path.parent.relative_to(base_dir).parts)


async def import_photos(
    db: AsyncSession,
    email: str,
    base_dir: Path,
    storage: StorageService = None,
) -> ImportTotals:
    storage = storage or StorageService.get_instance()
    catalog = CatalogService(db)
    totals = ImportTotals()

    print(f"[import] start dir={base_dir} user={email}")

    user = await AuthService.get_user_by_email(db, email)
    # a failed insert rolls back and expires user, so keep the plain id
    owner_id = user.id
    print(f"[db] user loaded id={owner_id}")

    for path, content_type, tags in scan_dir(base_dir):
        totals.found += 1
        filename = None
        try:
            content = await read_file(path)
            filename = await storage.store(content, path.name, content_type)
            await catalog.insert(Photo(owner_id=owner_id, title=path.stem, photo=filename, tags=tags))
            totals.imported += 1
            print(f"[photo] {path} -> {filename} tags={tags}")

        except Exception as e:
            totals.failed += 1
            if filename is not None:
                storage.schedule_cleanup(filename)
            msg = str(e)
            if len(msg) > 200:
                msg = msg[:200] + "...(truncated)"
            print(f"[photo] ERROR {path} {e.__class__.__name__}: {msg}")

    print(f"[import] totals found={totals.found} imported={totals.imported} failed={totals.failed}")
    return totals


async def main(email: str, base_dir: Path) -> None:
    await init_db()
    async with SessionLocal() as db:
        try:
            await import_photos(db, email, base_dir)
        except UserNotFound as e:
            print(f"[db] {e} -> abort")
            raise SystemExit(1)

    await CleanupWorker.get_instance().drain()


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description="Import a directory of photos for a user. "
                    "Sub-directory names become tags and the file name becomes the title."
    )
    parser.add_argument("--user", required=True, help="E-mail address of the owning user.")
    parser.add_argument("--dir", required=True, type=Path, help="Directory to import from.")
    args = parser.parse_args()

    asyncio.run(main(args.user, args.dir))
