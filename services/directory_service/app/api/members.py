from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ..config.settings import Settings
from ..core.security import Caller
from ..services.member import MemberService
from .dependencies import get_app_settings, get_current_caller, get_member_service, get_raw_body
from .procedures import MUTATION, QUERY, router as procedure_router

router = APIRouter()


@router.get("/{procedure_name}")
def call_query(
    procedure_name: str,
    raw_input: Optional[str] = Query(default=None, alias="input"),
    caller: Optional[Caller] = Depends(get_current_caller),
    service: MemberService = Depends(get_member_service),
):
    """
    Run a query procedure. The input is passed as JSON in the ``input`` query parameter.
    """
    return procedure_router.call(procedure_name, caller, raw_input, service, kind=QUERY)


@router.post("/{procedure_name}")
def call_mutation(
    procedure_name: str,
    response: Response,
    raw_body: bytes = Depends(get_raw_body),
    caller: Optional[Caller] = Depends(get_current_caller),
    service: MemberService = Depends(get_member_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Run a mutation procedure. The input is the JSON request body.
    """
    result = procedure_router.call(procedure_name, caller, raw_body, service, kind=MUTATION)
    if procedure_router.get(procedure_name).clears_session:
        response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return result
