from __future__ import annotations

"""
HTTP surface for the fieldnotes service.

Design intent:
- Keep handlers thin; services own the create/update/fetch decisions.
- Every body is an Envelope, whatever the status code.
- Compose services explicitly per application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from fieldnotes.internal_core.config import FieldNotesConfig, load_config
from fieldnotes.internal_core.contracts import Envelope, Profile
from fieldnotes.internal_core.errors import ValidationError
from fieldnotes.profiles.service import ProfileService
from fieldnotes.reports.service import FieldReportService
from fieldnotes.store import DocumentStore, build_store

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "DUPLICATE_KEY": 409,
    "STORAGE_ERROR": 503,
}


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: Optional[str] = None
    username: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    pronouns: Optional[str] = None
    occupation: Optional[str] = None
    bio: Optional[str] = None


class FieldReportCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    username: str = Field(min_length=1)
    session_id: str = Field(alias="sessionID", min_length=1)
    field_reports: str = Field(alias="fieldReports")
    time: str


class FieldReportWriteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    field_reports: str = Field(alias="fieldReports")
    time: str


def _respond(envelope: Envelope[Any], success_status: int = 200) -> JSONResponse:
    if envelope.is_ok:
        status_code = success_status
    else:
        status_code = _STATUS_BY_CODE.get(envelope.code or "", 500)
    return JSONResponse(status_code=status_code, content=envelope.to_wire())


def _profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def _field_report_service(request: Request) -> FieldReportService:
    return request.app.state.field_report_service


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        for err in exc.errors()
    ]
    fields = [name for name in fields if name]
    message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
    logger.debug("request validation failed path=%s fields=%s", request.url.path, fields)
    return _respond(Envelope[Any].fail(ValidationError(message, fields=fields)))


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/profiles")
def create_profile(
    payload: Profile,
    service: ProfileService = Depends(_profile_service),
) -> JSONResponse:
    return _respond(service.create_profile(payload), success_status=201)


@router.get("/profiles/{email}")
def fetch_profile(
    email: str,
    service: ProfileService = Depends(_profile_service),
) -> JSONResponse:
    return _respond(service.fetch_profile(email))


@router.patch("/profiles/{email}")
def update_user(
    email: str,
    payload: ProfileUpdateRequest,
    service: ProfileService = Depends(_profile_service),
) -> JSONResponse:
    """Replace every mutable field of the profile stored under ``email``.

    Optional fields omitted from the body are cleared, not left as they were.
    """
    if payload.email is not None and payload.email != email:
        return _respond(
            Envelope[Any].fail(ValidationError("email cannot be changed", fields=["email"]))
        )
    try:
        profile = Profile(
            email=email,
            username=payload.username,
            first_name=payload.first_name,
            last_name=payload.last_name,
            pronouns=payload.pronouns,
            occupation=payload.occupation,
            bio=payload.bio,
        )
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        logger.debug("update_user rejected path email fields=%s", fields)
        return _respond(
            Envelope[Any].fail(
                ValidationError(f"Invalid profile: {', '.join(fields) or 'payload'}", fields=fields)
            )
        )
    return _respond(service.update_user(profile))


@router.get("/reports/{session_id}/{username}")
def list_field_report(
    session_id: str,
    username: str,
    service: FieldReportService = Depends(_field_report_service),
) -> JSONResponse:
    return _respond(service.list_field_report(username, session_id))


@router.post("/reports")
def create_field_report(
    payload: FieldReportCreateRequest,
    service: FieldReportService = Depends(_field_report_service),
) -> JSONResponse:
    envelope = service.create_field_report(
        payload.username, payload.session_id, payload.field_reports, payload.time
    )
    return _respond(envelope, success_status=201)


@router.patch("/reports/{session_id}/{username}")
def update_field_report(
    session_id: str,
    username: str,
    payload: FieldReportWriteRequest,
    service: FieldReportService = Depends(_field_report_service),
) -> JSONResponse:
    envelope = service.update_field_report(
        username, session_id, payload.field_reports, payload.time
    )
    return _respond(envelope)


@router.put("/reports/{session_id}/{username}")
def save_field_report(
    session_id: str,
    username: str,
    payload: FieldReportWriteRequest,
    service: FieldReportService = Depends(_field_report_service),
) -> JSONResponse:
    envelope = service.save_field_report(username, session_id, payload.field_reports, payload.time)
    if envelope.is_ok and envelope.response is not None and envelope.response.created:
        return _respond(envelope, success_status=201)
    return _respond(envelope)


def create_app(
    config: Optional[FieldNotesConfig] = None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    resolved_config = config or load_config()
    logging.getLogger("fieldnotes").setLevel(resolved_config.FIELDNOTES_LOG_LEVEL)
    owns_store = store is None
    document_store = store if store is not None else build_store(resolved_config)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_store:
            document_store.close()

    application = FastAPI(title="fieldnotes service", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(resolved_config.FIELDNOTES_CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(RequestValidationError, _request_validation_handler)

    application.state.config = resolved_config
    application.state.document_store = document_store
    application.state.profile_service = ProfileService(document_store)
    application.state.field_report_service = FieldReportService(document_store)
    application.include_router(router)
    return application


app = create_app()
