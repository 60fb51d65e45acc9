import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from souqote.config import settings
from souqote.database import Base, engine

# Models must be registered before create_all and mapper configuration
from souqote.users import models as user_models  # noqa: F401
from souqote.categories import models as category_models  # noqa: F401
from souqote.rfqs import models as rfq_models  # noqa: F401
from souqote.quotes import models as quote_models  # noqa: F401
from souqote.messages import models as message_models  # noqa: F401
from souqote.reviews import models as review_models  # noqa: F401
from souqote.vendors import models as vendor_models  # noqa: F401
from souqote.notifications import models as notification_models  # noqa: F401

from souqote.users.routers import auth_router, router as user_router
from souqote.admin.router import router as admin_router
from souqote.categories.router import router as category_router
from souqote.rfqs.router import router as rfq_router
from souqote.quotes.router import router as quote_router
from souqote.messages.router import router as message_router
from souqote.reviews.router import router as review_router
from souqote.vendors.router import router as vendor_router
from souqote.notifications.router import router as notification_router
from souqote.storage.router import router as storage_router
from souqote.realtime.router import router as realtime_router
from souqote.storage.service import ensure_buckets


logger.add(settings.LOG_FILE, rotation="500 MB", level=settings.LOG_LEVEL)

# Ensure upload folders exist before the static mount
ensure_buckets()


# Database startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    Base.metadata.create_all(bind=engine)
    ensure_buckets()
    yield
    logger.info("Application shutdown")


# Create app
app = FastAPI(
    title="SOUQOTE",
    description="B2B request-for-quote marketplace API for buyers and vendors in the UAE.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(settings.PUBLIC_FILES_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="files")


# Routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(user_router, prefix="/users", tags=["Users"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])
app.include_router(category_router, prefix="/categories", tags=["Categories"])
app.include_router(rfq_router, prefix="/rfqs", tags=["RFQs"])
app.include_router(quote_router, prefix="/quotes", tags=["Quotes"])
app.include_router(message_router, prefix="/messages", tags=["Messages"])
app.include_router(review_router, prefix="/reviews", tags=["Reviews"])
app.include_router(vendor_router, prefix="/vendors", tags=["Vendors"])
app.include_router(notification_router, prefix="/notifications", tags=["Notifications"])
app.include_router(storage_router, prefix="/storage", tags=["Storage"])
app.include_router(realtime_router, prefix="/realtime", tags=["Realtime"])


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("souqote.main:app", host=os.getenv("SERVER_IP", "127.0.0.1"), port=8000)
