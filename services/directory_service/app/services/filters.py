"""Compile a MemberFilter into SQLAlchemy predicates."""

from typing import List

from sqlalchemy.sql.elements import ColumnElement

from ..models.member import Member
from ..schemas.member import MemberFilter

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_ignore_case(column, term: str) -> ColumnElement:
    return column.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE)


def build_member_conditions(member_filter: MemberFilter) -> List[ColumnElement]:
    """
    Translate each supplied filter field into one predicate.

    Omitted (None or empty) fields contribute nothing, so an empty filter
    selects every member. Callers AND the predicates together.
    """
    conditions: List[ColumnElement] = []
    if member_filter.year_of_admission is not None:
        conditions.append(Member.year_of_admission == member_filter.year_of_admission)
    if member_filter.degree_program:
        conditions.append(Member.degree_program == member_filter.degree_program)
    if member_filter.city:
        conditions.append(contains_ignore_case(Member.city, member_filter.city))
    if member_filter.search_term:
        conditions.append(contains_ignore_case(Member.name, member_filter.search_term))
    return conditions
