"""Status endpoint: service liveness plus database and migration details."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.access import AccessGuard, register_policy
from app.core.database import get_db
from app.schemas.status import StatusResponse
from app.services.status import collect_database_status

router = APIRouter()

STATUS_POLICY = register_policy("/status", "GET", public=True)


@router.get("", response_model=StatusResponse, dependencies=[Depends(AccessGuard(STATUS_POLICY))])
def get_status(db: Annotated[Session, Depends(get_db)]) -> StatusResponse:
    """
    Return service status, database identity, connection usage and applied migrations.
    Used by load balancers and monitoring; no authentication required.
    """
    return StatusResponse(status="ok", database=collect_database_status(db))
