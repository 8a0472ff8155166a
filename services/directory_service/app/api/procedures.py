"""
Procedure layer for the member directory.

Every remote call goes through ``ProcedureRouter.call``, which walks a fixed
sequence: look up the procedure, authorize the caller, validate the input,
execute against the data-access layer, and serialize the result. Any step may
stop the call with a ProcedureError. Authorization runs before the payload is
decoded, so a non-admin caller gets FORBIDDEN even when their payload is
invalid too.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import (
    DuplicateRollNumberError,
    ForbiddenError,
    InternalError,
    MethodNotSupportedError,
    NotFoundError,
    ProcedureError,
    StorageError,
    StoreUnavailableError,
    ValidationError,
)
from ..core.security import Caller, authorize
from ..schemas.member import (
    DeleteResponse,
    MemberCreate,
    MemberFilter,
    MemberIdInput,
    MemberResponse,
    MemberUpdateInput,
)
from ..services.member import MemberService

logger = logging.getLogger(__name__)

QUERY = "query"
MUTATION = "mutation"


@dataclass
class Procedure:
    name: str
    kind: str
    handler: Callable[[MemberService, Optional[Caller], Any], Any]
    input_model: Optional[Type[BaseModel]] = None
    admin_only: bool = False
    failure_message: str = "Internal server error"
    clears_session: bool = False


def describe_validation_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, mode="json")
    if isinstance(result, list):
        return [to_jsonable(item) for item in result]
    return result


class ProcedureRouter:
    def __init__(self):
        self._procedures: Dict[str, Procedure] = {}

    def procedure(self, name: str, kind: str = QUERY, input_model: Optional[Type[BaseModel]] = None,
                  admin_only: bool = False, failure_message: str = "Internal server error",
                  clears_session: bool = False):
        def decorator(handler):
            if name in self._procedures:
                raise ValueError(f"Procedure {name!r} is already registered")
            self._procedures[name] = Procedure(
                name=name,
                kind=kind,
                handler=handler,
                input_model=input_model,
                admin_only=admin_only,
                failure_message=failure_message,
                clears_session=clears_session,
            )
            return handler
        return decorator

    def get(self, name: str) -> Procedure:
        procedure = self._procedures.get(name)
        if procedure is None:
            raise NotFoundError(f"No procedure named '{name}'")
        return procedure

    def parse_input(self, procedure: Procedure, raw_input: Any) -> Optional[BaseModel]:
        if procedure.input_model is None:
            return None
        payload = raw_input
        try:
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode("utf-8")
            if isinstance(payload, str):
                payload = json.loads(payload) if payload.strip() else None
        except ValueError as e:
            raise ValidationError("Input is not valid JSON") from e
        if payload is None:
            payload = {}
        try:
            return procedure.input_model.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(describe_validation_error(e)) from e

    def call(self, name: str, caller: Optional[Caller], raw_input: Any, service: MemberService,
             kind: Optional[str] = None) -> Any:
        """
        Run a procedure. When ``kind`` is given it must match the procedure's kind;
        the check happens after authorization.
        """
        procedure = self.get(name)

        if not authorize(caller, procedure):
            logger.warning(
                "Forbidden call to %s by %s",
                name, caller.id if caller else "anonymous",
            )
            raise ForbiddenError("Admin access required")

        if kind is not None and procedure.kind != kind:
            method = "POST" if procedure.kind == MUTATION else "GET"
            raise MethodNotSupportedError(f"'{name}' is a {procedure.kind}; use {method}")

        data = self.parse_input(procedure, raw_input)

        try:
            result = procedure.handler(service, caller, data)
        except ProcedureError:
            raise
        except DuplicateRollNumberError as e:
            raise ValidationError("A member with this roll number already exists") from e
        except StoreUnavailableError as e:
            raise InternalError("Database is not available") from e
        except StorageError as e:
            raise InternalError(procedure.failure_message) from e
        except Exception as e:
            logger.exception("Procedure %s failed", name)
            raise InternalError(procedure.failure_message) from e

        return to_jsonable(result)


router = ProcedureRouter()


@router.procedure("members.list", input_model=MemberFilter, failure_message="Failed to get members")
def list_members(service: MemberService, caller: Optional[Caller], data: MemberFilter):
    return [MemberResponse.model_validate(m) for m in service.list_members(data)]


@router.procedure("members.getById", input_model=MemberIdInput, failure_message="Failed to get member")
def get_member(service: MemberService, caller: Optional[Caller], data: MemberIdInput):
    member = service.get_member(data.id)
    return MemberResponse.model_validate(member) if member is not None else None


@router.procedure("members.getFilterOptions", failure_message="Failed to get filter options")
def get_filter_options(service: MemberService, caller: Optional[Caller], data: None):
    return service.get_filter_options()


@router.procedure("members.create", kind=MUTATION, input_model=MemberCreate, admin_only=True,
                  failure_message="Failed to create member")
def create_member(service: MemberService, caller: Optional[Caller], data: MemberCreate):
    member = service.create_member(data, is_verified=True)
    logger.info("Member created id=%s roll_number=%s by=%s", member.id, member.roll_number, caller.id)
    return MemberResponse.model_validate(member)


@router.procedure("members.update", kind=MUTATION, input_model=MemberUpdateInput, admin_only=True,
                  failure_message="Failed to update member")
def update_member(service: MemberService, caller: Optional[Caller], data: MemberUpdateInput):
    member = service.update_member(data.id, data.data)
    if member is None:
        raise NotFoundError("Member not found")
    logger.info("Member updated id=%s fields=%s by=%s",
                member.id, sorted(data.data.changes()), caller.id)
    return MemberResponse.model_validate(member)


@router.procedure("members.delete", kind=MUTATION, input_model=MemberIdInput, admin_only=True,
                  failure_message="Failed to delete member")
def delete_member(service: MemberService, caller: Optional[Caller], data: MemberIdInput):
    if not service.delete_member(data.id):
        raise NotFoundError("Member not found")
    logger.info("Member deleted id=%s by=%s", data.id, caller.id)
    return DeleteResponse(success=True)


@router.procedure("auth.me")
def current_caller(service: MemberService, caller: Optional[Caller], data: None):
    return caller.to_dict() if caller is not None else None


@router.procedure("auth.logout", kind=MUTATION, clears_session=True)
def logout(service: MemberService, caller: Optional[Caller], data: None):
    return {"success": True}
