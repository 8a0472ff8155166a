from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from ..models.database import Base

ROLL_NUMBER_CONSTRAINT = "uq_members_roll_number"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Member(Base):
    """SQLAlchemy ORM model for directory member records"""

    __tablename__ = 'members'
    __table_args__ = (
        UniqueConstraint("roll_number", name=ROLL_NUMBER_CONSTRAINT),
        CheckConstraint("year_of_admission >= 1900", name="ck_members_year_of_admission"),
        CheckConstraint("name <> ''", name="ck_members_name_not_empty"),
        CheckConstraint("degree_program <> ''", name="ck_members_degree_program_not_empty"),
        CheckConstraint("roll_number <> ''", name="ck_members_roll_number_not_empty"),
        CheckConstraint("city <> ''", name="ck_members_city_not_empty"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(320))
    phone = Column(String(20))
    year_of_admission = Column(Integer, nullable=False, index=True)
    degree_program = Column(String(100), nullable=False, index=True)
    roll_number = Column(String(50), nullable=False)
    department = Column(String(255))
    city = Column(String(100), nullable=False, index=True)
    permanent_address = Column(Text)
    photo_url = Column(Text)
    bio = Column(Text)
    # JSON document kept as text; the directory does not interpret it.
    social_links = Column(Text)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Member(id={self.id}, roll_number='{self.roll_number}', city='{self.city}')>"
