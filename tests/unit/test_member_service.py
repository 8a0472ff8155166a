import unittest
from unittest.mock import MagicMock
from faker import Faker
from sqlalchemy.exc import IntegrityError, OperationalError

from services.directory_service.app.core.errors import (
    DuplicateRollNumberError,
    StorageError,
    StoreUnavailableError,
)
from services.directory_service.app.models.database import DatabaseStore
from services.directory_service.app.models.member import Member
from services.directory_service.app.schemas.member import (
    FilterOptions,
    MemberCreate,
    MemberFilter,
    MemberUpdate,
)
from services.directory_service.app.services.member import MemberService

fake = Faker()


def member_create(**overrides) -> MemberCreate:
    data = {
        "name": fake.name(),
        "email": fake.free_email(),
        "year_of_admission": 2023,
        "degree_program": "BS",
        "roll_number": f"23-CS-{fake.unique.random_int(min=1, max=999999):06d}",
        "city": "Skardu",
    }
    data.update(overrides)
    return MemberCreate(**data)


class TestMemberService(unittest.TestCase):
    def setUp(self):
        self.store = DatabaseStore("sqlite://")
        self.store.create_all()
        self.db = self.store.session()
        self.member_service = MemberService(db=self.db)

    def tearDown(self):
        self.db.close()
        self.store.dispose()

    def test_create_member(self):
        """
        Created members are re-read from storage with generated fields populated.
        """
        member_data = member_create(name="Ahmed Ali", phone="+92 300 1234567")

        result = self.member_service.create_member(member_data=member_data)

        self.assertIsInstance(result, Member)
        self.assertIsNotNone(result.id)
        self.assertEqual(result.name, "Ahmed Ali")
        self.assertEqual(result.roll_number, member_data.roll_number)
        self.assertTrue(result.is_verified)
        self.assertIsNotNone(result.created_at)
        self.assertIsNotNone(result.updated_at)

    def test_create_then_get_round_trip(self):
        created = self.member_service.create_member(member_create(city="Gilgit"))

        fetched = self.member_service.get_member(created.id)

        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.city, "Gilgit")
        self.assertIsNone(fetched.department)

    def test_get_missing_member_returns_none(self):
        self.assertIsNone(self.member_service.get_member(99999))

    def test_duplicate_roll_number_is_distinguished(self):
        self.member_service.create_member(member_create(roll_number="23-CS-001"))

        with self.assertRaises(DuplicateRollNumberError):
            self.member_service.create_member(member_create(roll_number="23-CS-001"))

        # The session is still usable after the rollback.
        self.assertEqual(len(self.member_service.list_members(MemberFilter())), 1)

    def test_list_members_newest_first(self):
        first = self.member_service.create_member(member_create())
        second = self.member_service.create_member(member_create())
        third = self.member_service.create_member(member_create())

        result = self.member_service.list_members(MemberFilter())

        self.assertEqual([m.id for m in result], [third.id, second.id, first.id])

    def test_list_members_combines_filters(self):
        a = self.member_service.create_member(member_create(year_of_admission=2023, degree_program="BS"))
        self.member_service.create_member(member_create(year_of_admission=2023, degree_program="MS"))
        self.member_service.create_member(member_create(year_of_admission=2022, degree_program="BS"))

        result = self.member_service.list_members(
            MemberFilter(year_of_admission=2023, degree_program="BS")
        )

        self.assertEqual([m.id for m in result], [a.id])

    def test_update_member_changes_only_supplied_fields(self):
        member = self.member_service.create_member(member_create(name="Old Name", city="Hunza"))
        original_updated_at = member.updated_at
        original_roll_number = member.roll_number

        result = self.member_service.update_member(member.id, MemberUpdate(name="New Name"))

        self.assertEqual(result.name, "New Name")
        self.assertEqual(result.city, "Hunza")
        self.assertEqual(result.roll_number, original_roll_number)
        self.assertGreater(result.updated_at, original_updated_at)

    def test_update_member_can_clear_optional_field(self):
        member = self.member_service.create_member(member_create(department="Physics"))

        result = self.member_service.update_member(member.id, MemberUpdate(department=None))

        self.assertIsNone(result.department)

    def test_update_missing_member_returns_none(self):
        self.assertIsNone(self.member_service.update_member(424242, MemberUpdate(name="Nobody")))

    def test_update_to_duplicate_roll_number(self):
        self.member_service.create_member(member_create(roll_number="22-EE-010"))
        other = self.member_service.create_member(member_create(roll_number="22-EE-011"))

        with self.assertRaises(DuplicateRollNumberError):
            self.member_service.update_member(other.id, MemberUpdate(roll_number="22-EE-010"))

    def test_delete_member(self):
        member_id = self.member_service.create_member(member_create()).id

        self.assertTrue(self.member_service.delete_member(member_id))
        self.assertIsNone(self.member_service.get_member(member_id))
        self.assertFalse(self.member_service.delete_member(member_id))

    def test_get_filter_options(self):
        for year, degree, city in [(2021, "BS", "Skardu"), (2023, "MS", "Gilgit"), (2021, "BS", "Skardu")]:
            self.member_service.create_member(
                member_create(year_of_admission=year, degree_program=degree, city=city)
            )

        options = self.member_service.get_filter_options()

        self.assertEqual(options.years, [2023, 2021])
        self.assertEqual(options.degrees, ["BS", "MS"])
        self.assertEqual(options.cities, ["Gilgit", "Skardu"])


class TestMemberServiceWithoutDatabase(unittest.TestCase):
    def setUp(self):
        self.member_service = MemberService(db=None)

    def test_reads_degrade_to_empty(self):
        self.assertFalse(self.member_service.available)
        self.assertEqual(self.member_service.list_members(MemberFilter(city="Skardu")), [])
        self.assertIsNone(self.member_service.get_member(1))
        self.assertEqual(self.member_service.get_filter_options(), FilterOptions())

    def test_writes_signal_unavailability(self):
        with self.assertRaises(StoreUnavailableError):
            self.member_service.create_member(member_create())
        with self.assertRaises(StoreUnavailableError):
            self.member_service.update_member(1, MemberUpdate(name="X"))
        with self.assertRaises(StoreUnavailableError):
            self.member_service.delete_member(1)


class TestMemberServiceStorageFaults(unittest.TestCase):
    def setUp(self):
        self.mock_db = MagicMock()
        self.member_service = MemberService(db=self.mock_db)

    def test_list_members_swallows_storage_errors(self):
        self.mock_db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        self.assertEqual(self.member_service.list_members(MemberFilter()), [])
        self.mock_db.rollback.assert_called_once()

    def test_get_filter_options_swallows_storage_errors(self):
        self.mock_db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        self.assertEqual(self.member_service.get_filter_options(), FilterOptions())

    def test_unique_violation_from_postgres_is_duplicate(self):
        self.mock_db.commit.side_effect = IntegrityError(
            "INSERT", {},
            Exception('duplicate key value violates unique constraint "uq_members_roll_number"'),
        )

        with self.assertRaises(DuplicateRollNumberError):
            self.member_service.create_member(member_create())
        self.mock_db.rollback.assert_called_once()

    def test_other_integrity_error_is_generic_storage_error(self):
        self.mock_db.commit.side_effect = IntegrityError(
            "INSERT", {}, Exception("NOT NULL constraint failed: members.city"),
        )

        with self.assertRaises(StorageError) as ctx:
            self.member_service.create_member(member_create())
        self.assertNotIsInstance(ctx.exception, DuplicateRollNumberError)

    def test_connection_failure_on_delete_is_storage_error(self):
        self.mock_db.query.return_value.filter.return_value.delete.side_effect = OperationalError(
            "DELETE", {}, Exception("server closed the connection"),
        )

        with self.assertRaises(StorageError):
            self.member_service.delete_member(1)
        self.mock_db.commit.assert_not_called()


if __name__ == '__main__':
    unittest.main()
