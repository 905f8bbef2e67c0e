import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sellerhub.api.routes import router
from sellerhub.core.config import settings
from sellerhub.core.db import engine
from sellerhub.core.logging_config import get_logging_config
from sellerhub.models.base import Base
import sellerhub.models.account  # noqa: F401  (регистрирует таблицы в Base.metadata)

logging.config.dictConfig(get_logging_config(settings))


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Seller Hub API", lifespan=lifespan)
app.include_router(router)
