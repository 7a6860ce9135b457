import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import Base, engine, get_db
from app.core.errors import EquipmentError
from app.routers.auth import router as auth_router
from app.routers.equipment import router as equipment_router
from app.routers.media import router as media_router
from app.web.router import router as web_router

# Import models so SQLAlchemy registers them before create_all()
import app.models.user  # noqa: F401
import app.models.magic_link  # noqa: F401
import app.models.session  # noqa: F401
import app.models.equipment  # noqa: F401
import app.models.status_history  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

Base.metadata.create_all(bind=engine)

app.mount("/static", StaticFiles(directory=str(Path(__file__).parent / "web" / "static")), name="static")

app.include_router(auth_router)
app.include_router(equipment_router)
app.include_router(media_router)
app.include_router(web_router)


@app.exception_handler(EquipmentError)
async def equipment_error_handler(request: Request, exc: EquipmentError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return {"ok": True}
