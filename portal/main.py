# portal/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.api.v1.admin import router as admin_router
from portal.api.v1.auth import router as auth_router
from portal.api.v1.checkout import router as checkout_router
from portal.api.v1.onboarding import router as onboarding_router
from portal.core.config import settings
from portal.core.logging_config import setup_logging
from portal.db.session import init_db

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="ApplyWizz Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

# Auth routes first so /admin/login stays public; everything else under
# /admin goes through get_current_admin.
app.include_router(auth_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(checkout_router, prefix="/api/v1")
app.include_router(onboarding_router, prefix="/api/v1")


@app.on_event("startup")
def startup_event():
    init_db()


@app.get("/")
def root():
    return {"status": "ApplyWizz portal running"}
