import contextlib
import logging

from fastapi import FastAPI

from photoshare.config import config
from photoshare.db.session import engine, init_db
from photoshare.routers import register_routers
from photoshare.services.cleanup_service import CleanupWorker

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@contextlib.asynccontextmanager
async def lifespan(_app: FastAPI):
    await init_db()
    yield
    await CleanupWorker.get_instance().drain()
    await engine.dispose()


app = FastAPI(title="photoshare", lifespan=lifespan)
register_routers(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.FASTAPI_HOST, port=config.FASTAPI_PORT)
