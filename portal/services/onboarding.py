# portal/services/onboarding.py
"""
Client onboarding: prefill from the paid transaction, shape the profile and
submit it once to the ApplyWizz direct-onboard API.

Flow of one ``OnboardingSession``:
  idle -> prefilling (optional, when a JB ID is known) -> editing
       -> submitting -> done | error

Behavior:
- The ``jb_id`` link parameter may arrive as dash-separated character codes
  (``74-66-45-50`` for ``JB-2``); see ``decode_jb_id``.
- A resume is mandatory: either a new file (uploaded to S3 first) or an
  already uploaded ``resume_url``.
- No retries and no idempotency key: resubmitting posts the profile again.
"""

import datetime
import enum
import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.errors import ConfigurationError, PortalError, RemoteCallError, ValidationFailed
from portal.core.logging_config import sanitize_log_data
from portal.db.models import Transaction
from portal.services import storage
from portal.services.admin import get_transaction_by_id

logger = logging.getLogger(__name__)

GENDER_OPTIONS = ["Male", "Female", "Other", "Prefer Not to Say"]
WORK_AUTH_OPTIONS = ["F1", "H1B", "Green Card", "Citizen", "H4EAD", "Other"]
WORK_PREF_OPTIONS = ["Remote", "Hybrid", "On-site", "All"]
DEFAULT_WORK_PREF = "Remote"
EDUCATION_OPTIONS = ["High School", "Associate Degree", "Bachelor's Degree", "Master's Degree", "PhD", "Other"]
JOB_ROLE_OPTIONS = [
    "Active Directory", "Anti Money Laundering (AML)", "Biotechnology", "Biotechnology Internship",
    "Business Analyst", "Business Intelligence Engineer", "CLINICAL DATA ANALYST", "Clinical Research Coordinator",
    "Computer Science", "Computer Science Internship", "Construction Management", "CRM Sales", "Cyber security",
    "Cybersecurity for UK", "Data Analyst", "Data Analyst Internships", "Data Engineer", "Data science early grad",
    "Data Science for Germany", "Data Scientist", "Data engineer", "Machine learning Developer", "DevOps",
    "Electrical Engineer", "Electrical Project", "Electronic Health Records (EHR)", "Embedded software",
    "Embedded Software Engineer", "Environmental Health and Safety (EHS)", "Financial analyst",
    "Financial Analyst & KYC Analyst & AML", "Financial Data Analyst", "Full Stack", "Generative AI",
    "Health care data analyst", "Healthcare data analyst", "Health care business analyst",
    "Healthcare data engineer", "Healthcare Data Science", "HR Recruiter", "Java Developer", "Java Full Stack",
    "Manufacturing engineer (Mechanical)", "Mechanical Engineer", "Medical Coding", ".Net", "Network Engineer",
    "Payroll Analyst", "Project Management", "Project Management Internship", "python developer",
    "Quality Engineer", "Regulatory Affairs", "Safety Analyst", "Salesforce Developer", "SAP",
    "Sap basis and security", "SAP MM", "Scrum Master", "ServiceNow Developer", "Software Developer",
    "Software Engineer", "Supply Chain", "Tax analyst", "UX Designer", "Workday Analyst",
]

_ENCODED_JB_ID = re.compile(r"^[0-9-]+$")
API_ERROR_TEXT_LIMIT = 200


class OnboardingState(str, enum.Enum):
    IDLE = "idle"
    PREFILLING = "prefilling"
    EDITING = "editing"
    SUBMITTING = "submitting"
    DONE = "done"
    ERROR = "error"


class OnboardingForm(BaseModel):
    # identity, prefilled from the transaction
    full_name: str = ""
    company_email: str = ""
    personal_email: str = ""
    whatsapp_number: str = ""
    callable_phone: str = ""
    gender: str = ""
    applywizz_id: str = ""
    state_of_residence: str = ""
    zip_or_country: str = ""
    start_date: str = ""

    # job search
    experience: Union[str, int, float] = ""
    job_role_preferences: List[str] = Field(default_factory=list)
    alternate_job_roles: Union[str, List[str]] = ""
    location_preferences: Union[str, List[str]] = ""
    work_preferences: Union[str, List[str]] = ""
    willing_to_relocate: bool = False
    add_ons_info: List[str] = Field(default_factory=lambda: ["job-links"])
    desired_start_date: str = ""
    end_date: str = ""
    no_of_applications: str = ""
    exclude_companies: str = ""
    salary_range: str = ""
    badge_value: str = ""

    # education
    highest_education: str = ""
    university_name: str = ""
    cumulative_gpa: str = ""
    graduation_year: str = ""
    main_subject: str = ""

    # work authorization
    visa_type: str = ""
    sponsorship: bool = False
    is_over_18: bool = False
    eligible_to_work_in_us: bool = False
    authorized_without_visa: bool = False
    require_future_sponsorship: bool = False
    can_perform_essential_functions: bool = False
    can_provide_legal_docs: bool = False

    # links and resume
    resume_url: str = ""
    linked_in_url: str = ""
    github_url: str = ""

    # employment history and background check
    worked_for_company_before: bool = False
    discharged_for_policy_violation: bool = False
    referred_by_agency: bool = False
    can_work_3_days_in_office: bool = False
    convicted_of_felony: bool = False
    felony_explanation: str = ""
    pending_investigation: bool = False
    willing_background_check: bool = False
    willing_drug_screen: bool = False
    failed_or_refused_drug_test: bool = False
    uses_substances_affecting_duties: bool = False
    substances_description: str = ""

    # demographics
    is_hispanic_latino: bool = False
    race_ethnicity: str = ""
    veteran_status: str = ""
    disability_status: str = ""
    has_relatives_in_company: bool = False
    relatives_details: str = ""


class ResumeFile(BaseModel):
    filename: str
    content: bytes
    content_type: Optional[str] = None


def decode_jb_id(raw: Optional[str]) -> Optional[str]:
    """
    Undo the character-code encoding used in emailed links.

    Only strings made solely of digits and dashes are decoded; anything else
    is returned as is. A purely numeric JB ID that was never encoded is
    indistinguishable from an encoded one and will be decoded too.
    """
    if not raw:
        return None
    if not _ENCODED_JB_ID.fullmatch(raw):
        return raw
    try:
        return "".join(chr(int(code)) for code in raw.split("-"))
    except (ValueError, OverflowError):
        # empty parts ("74--66") or code points out of range
        logger.warning("Failed to decode JB-ID %r, using it verbatim", raw)
        return raw


def filter_job_roles(term: str = "") -> List[str]:
    term = (term or "").lower()
    return [role for role in JOB_ROLE_OPTIONS if term in role.lower()]


def prefill_from_transaction(form: OnboardingForm, tx: Transaction,
                             today: Optional[datetime.date] = None) -> OnboardingForm:
    """Copy identity fields from the transaction row onto a new form."""
    if tx.plan_started:
        start = tx.plan_started.date().isoformat()
    else:
        start = (today or datetime.date.today()).isoformat()
    return form.model_copy(update={
        "full_name": tx.full_name or "",
        "company_email": tx.email or "",
        "personal_email": tx.email or "",
        "applywizz_id": tx.jb_id or "",
        "gender": tx.gender or "",
        "state_of_residence": tx.location or "",
        "zip_or_country": tx.country or "",
        "start_date": start,
        "whatsapp_number": tx.mobile_number or "",
        "callable_phone": tx.mobile_number or "",
    })


def normalize_work_preference(value: Any) -> str:
    """Map free input onto one of WORK_PREF_OPTIONS, defaulting to Remote."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    raw = str(value or DEFAULT_WORK_PREF).lower()
    return next((p for p in WORK_PREF_OPTIONS if p.lower() == raw), DEFAULT_WORK_PREF)


def _as_list(value: Union[str, List[str], None]) -> List[str]:
    if isinstance(value, list):
        return value
    return [value] if value else []


def _split_roles(value: Union[str, List[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [role.strip() for role in value.split(",")]


def build_payload(form: OnboardingForm, resume_key: str) -> Dict[str, Any]:
    """Shape the form into the direct-onboard request body."""
    return {
        # required
        "full_name": form.full_name,
        "email": form.company_email or form.personal_email,
        "phone": form.whatsapp_number or form.callable_phone,
        "experience": str(form.experience),
        "applywizz_id": form.applywizz_id,
        "gender": form.gender,
        "state_of_residence": form.state_of_residence,
        "zip_or_country": form.zip_or_country,
        "resume_s3_path": resume_key,
        "start_date": form.start_date or form.desired_start_date,
        "job_role_preferences": form.job_role_preferences,
        "visa_type": form.visa_type,
        "location_preferences": _as_list(form.location_preferences),
        "salary_range": form.salary_range,
        "work_preferences": normalize_work_preference(form.work_preferences),
        "sponsorship": bool(form.sponsorship),
        # optional
        "github_url": form.github_url or "",
        "linked_in_url": form.linked_in_url or "",
        "end_date": form.end_date or "",
        "willing_to_relocate": bool(form.willing_to_relocate),
        "alternate_job_roles": _split_roles(form.alternate_job_roles),
    }


def extract_api_error(status_code: int, body: str) -> str:
    """
    Human-readable message from a failed API response: JSON ``detail`` or
    ``message`` when the body is JSON, else the status and the start of the text.
    """
    try:
        parsed = json.loads(body)
    except ValueError:
        return f"API Error: {status_code} - {body[:API_ERROR_TEXT_LIMIT]}"
    if isinstance(parsed, dict):
        detail = parsed.get("detail") or parsed.get("message")
        if detail:
            return detail if isinstance(detail, str) else json.dumps(detail)
    return f"API Error: {status_code}"


async def post_profile(payload: Dict[str, Any], client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    url = settings.ONBOARDING_API_URL
    if not url:
        raise ConfigurationError("ONBOARDING_API_URL is not configured")

    async def _post(c: httpx.AsyncClient) -> httpx.Response:
        return await c.post(url, json=payload, timeout=settings.HTTP_TIMEOUT_SEC)

    logger.info("Submitting onboarding profile: %s", sanitize_log_data(payload))
    try:
        if client is not None:
            resp = await _post(client)
        else:
            async with httpx.AsyncClient() as c:
                resp = await _post(c)
    except httpx.HTTPError as exc:
        logger.error("Onboarding API unreachable: %r", exc)
        raise RemoteCallError("Could not reach the onboarding API") from exc

    if not resp.is_success:
        logger.error("Onboarding API error %s: %s", resp.status_code, resp.text[:API_ERROR_TEXT_LIMIT])
        raise RemoteCallError(extract_api_error(resp.status_code, resp.text), status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError:
        return {"raw": resp.text}


class OnboardingSession:
    def __init__(self, form: Optional[OnboardingForm] = None):
        self.form = form or OnboardingForm()
        self.state = OnboardingState.IDLE
        self.is_auto_filled = False
        self.error: Optional[str] = None
        self.result: Optional[Dict[str, Any]] = None

    def prefill(self, db: Session, jb_id: Optional[str], from_link: bool = False) -> Transaction:
        if not jb_id:
            raise ValidationFailed({"jb_id": "Please enter a JB ID"})

        self.state = OnboardingState.PREFILLING
        try:
            tx = get_transaction_by_id(db, jb_id)
        except Exception as exc:
            logger.warning("Prefill failed for %s: %s", jb_id, exc)
            self.state = OnboardingState.EDITING
            self.error = getattr(exc, "message", None) or "Could not load client details"
            raise

        self.form = prefill_from_transaction(self.form, tx)
        self.is_auto_filled = from_link
        self.state = OnboardingState.EDITING
        return tx

    def edit(self, **changes: Any) -> None:
        self.form = self.form.model_copy(update=changes)
        if self.state in (OnboardingState.IDLE, OnboardingState.DONE, OnboardingState.ERROR):
            self.state = OnboardingState.EDITING

    async def submit(self, resume: Optional[ResumeFile] = None,
                     client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
        self.state = OnboardingState.SUBMITTING
        self.error = None
        try:
            resume_key = self.form.resume_url
            if resume is not None:
                if not self.form.applywizz_id:
                    raise ValidationFailed({"applywizz_id": "JB ID is required before uploading resume."})
                resume_key = await storage.async_upload_resume(
                    resume.content, resume.filename, self.form.applywizz_id, resume.content_type,
                )
                self.form = self.form.model_copy(update={"resume_url": resume_key})
            elif not resume_key:
                raise ValidationFailed({"resume": "Please upload a resume file."})

            self.result = await post_profile(build_payload(self.form, resume_key), client=client)
        except (PortalError, ValueError) as exc:
            self.state = OnboardingState.ERROR
            self.error = getattr(exc, "message", None) or str(exc)
            raise

        self.state = OnboardingState.DONE
        logger.info("Onboarding completed for %s", self.form.applywizz_id)
        return self.result
