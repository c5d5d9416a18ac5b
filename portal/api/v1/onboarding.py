# portal/api/v1/onboarding.py
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from portal.api.v1.errors import to_http
from portal.api.v1.schemas import OnboardingOptions
from portal.core.errors import PortalError
from portal.db.session import get_db
from portal.services import onboarding as onboarding_service
from portal.services.onboarding import OnboardingForm, OnboardingSession, ResumeFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding")

ALLOWED_RESUME_EXTENSIONS = (".pdf",)


@router.get("/options", response_model=OnboardingOptions)
def options(search: str = Query("")):
    return OnboardingOptions(
        genders=onboarding_service.GENDER_OPTIONS,
        work_authorizations=onboarding_service.WORK_AUTH_OPTIONS,
        work_preferences=onboarding_service.WORK_PREF_OPTIONS,
        education=onboarding_service.EDUCATION_OPTIONS,
        job_roles=onboarding_service.filter_job_roles(search),
    )


@router.get("/prefill")
def prefill(jb_id: Optional[str] = Query(None), from_link: bool = Query(True), db: Session = Depends(get_db)):
    """
    ``jb_id`` is the raw link parameter; character-code encoded ids are decoded
    before the lookup. Pass ``from_link=false`` for a manually typed id.
    """
    decoded = onboarding_service.decode_jb_id(jb_id.strip() if jb_id else jb_id)
    session = OnboardingSession()
    try:
        session.prefill(db, decoded, from_link=from_link)
    except PortalError as exc:
        raise to_http(exc)
    return {
        "jb_id": decoded,
        "is_auto_filled": session.is_auto_filled,
        "state": session.state.value,
        "form": session.form,
    }


@router.post("/submit")
async def submit(profile: str = Form(...), resume: Optional[UploadFile] = File(None)):
    """
    ``profile`` is the onboarding form as a JSON string; ``resume`` is optional
    when ``profile.resume_url`` already points at an uploaded file.
    """
    try:
        form = OnboardingForm.model_validate(json.loads(profile))
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=422, detail=f"Invalid profile: {exc}")

    resume_file = None
    if resume is not None and resume.filename:
        if not resume.filename.lower().endswith(ALLOWED_RESUME_EXTENSIONS):
            raise HTTPException(status_code=400, detail="Unsupported file type")
        resume_file = ResumeFile(
            filename=resume.filename,
            content=await resume.read(),
            content_type=resume.content_type,
        )

    session = OnboardingSession(form)
    try:
        result = await session.submit(resume_file)
    except PortalError as exc:
        raise to_http(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {
        "state": session.state.value,
        "resume_s3_path": session.form.resume_url,
        "result": result,
    }
