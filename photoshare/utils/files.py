import asyncio
import io
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from PIL import Image
from fastapi import UploadFile

from photoshare.config import config


class FileTooLargeError(Exception):
    pass


SEM = asyncio.Semaphore(config.MAX_CONCURRENT_IO)


async def read_file_from_upload_file(file: UploadFile, max_file_size: int) -> bytes:
    data = bytearray()
    while chunk := await file.read(1024 * 1024):
        data.extend(chunk)
        if len(data) > max_file_size:
            raise FileTooLargeError(f"File exceeds max file size: '{file.filename}'")

    return bytes(data)


async def write_file_bytes(data: bytes, path: Path) -> None:
    async with SEM:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)


async def delete_file(path: Path) -> bool:
    async with SEM:
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return True
        except OSError:
            return False


def _verify_image(b: bytes) -> None:
    with Image.open(io.BytesIO(b)) as image:
        image.verify()


async def verify_image_bytes(b: bytes) -> None:
    async with SEM:
        await asyncio.to_thread(_verify_image, b)


async def read_file(path: Path) -> Optional[bytes]:
    async with SEM:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
