import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import DuplicateRollNumberError, StorageError, StoreUnavailableError
from ..models.member import ROLL_NUMBER_CONSTRAINT, Member, utcnow
from ..schemas.member import FilterOptions, MemberCreate, MemberFilter, MemberUpdate
from .filters import build_member_conditions

logger = logging.getLogger(__name__)


def is_roll_number_violation(exc: IntegrityError) -> bool:
    """Recognise a unique-constraint failure on roll_number across backends."""
    detail = str(exc.orig).lower()
    if ROLL_NUMBER_CONSTRAINT in detail:
        return True
    return "roll_number" in detail and ("unique" in detail or "duplicate" in detail)


class MemberService:
    """
    Data-access layer for directory members.

    ``db`` is None when the application runs without a database. Reads then
    degrade to empty results so the public directory stays viewable, while
    writes raise StoreUnavailableError.
    """

    def __init__(self, db: Optional[Session]):
        self.db = db

    @property
    def available(self) -> bool:
        return self.db is not None

    @contextmanager
    def _writing(self, action: str) -> Iterator[Session]:
        if self.db is None:
            logger.warning("Cannot %s member: database not available", action)
            raise StoreUnavailableError(f"Cannot {action} member: database not available")
        try:
            yield self.db
        except IntegrityError as e:
            self.db.rollback()
            if is_roll_number_violation(e):
                raise DuplicateRollNumberError("roll number already exists") from e
            logger.exception("Failed to %s member", action)
            raise StorageError(f"Failed to {action} member") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to %s member", action)
            raise StorageError(f"Failed to {action} member") from e

    def list_members(self, member_filter: Optional[MemberFilter] = None) -> List[Member]:
        """
        Return members matching every supplied filter, newest first.

        Never raises: an unavailable or failing store yields an empty list.
        """
        if self.db is None:
            logger.warning("Cannot get members: database not available")
            return []
        conditions = build_member_conditions(member_filter or MemberFilter())
        try:
            query = self.db.query(Member)
            if conditions:
                query = query.filter(and_(*conditions))
            return query.order_by(desc(Member.created_at), desc(Member.id)).all()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to get members")
            return []

    def get_member(self, member_id: int) -> Optional[Member]:
        if self.db is None:
            logger.warning("Cannot get member: database not available")
            return None
        try:
            return self.db.query(Member).filter(Member.id == member_id).first()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to get member id=%s", member_id)
            return None

    def create_member(self, member_data: MemberCreate, is_verified: bool = True) -> Member:
        with self._writing("create") as db:
            db_member = Member(**member_data.model_dump(), is_verified=is_verified)
            db.add(db_member)
            db.commit()
            db.refresh(db_member)
        return db_member

    def update_member(self, member_id: int, member_data: MemberUpdate) -> Optional[Member]:
        """Apply only the supplied fields; updated_at is refreshed on every call."""
        with self._writing("update") as db:
            db_member = db.query(Member).filter(Member.id == member_id).first()
            if db_member is None:
                return None
            for field, value in member_data.changes().items():
                setattr(db_member, field, value)
            db_member.updated_at = utcnow()
            db.commit()
            db.refresh(db_member)
        return db_member

    def delete_member(self, member_id: int) -> bool:
        with self._writing("delete") as db:
            num_deleted = db.query(Member).filter(
                Member.id == member_id
            ).delete(synchronize_session=False)
            db.commit()
        return num_deleted > 0

    def get_filter_options(self) -> FilterOptions:
        """Distinct years (descending), degree programs and cities across all members."""
        if self.db is None:
            logger.warning("Cannot get filter options: database not available")
            return FilterOptions()
        try:
            rows = self.db.query(
                Member.year_of_admission, Member.degree_program, Member.city
            ).all()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to get filter options")
            return FilterOptions()
        return FilterOptions(
            years=sorted({row.year_of_admission for row in rows}, reverse=True),
            degrees=sorted({row.degree_program for row in rows}),
            cities=sorted({row.city for row in rows}),
        )
