from __future__ import annotations

import unittest

from app.domain.errors import DomainValidationError, DuplicateError
from app.domain.field_metadata import FieldMetadata
from app.domain.file_metadata import FileMetadata
from app.mappers.entity_normalizer import RecordNormalizer, normalize_header
from tests.fakes import InMemoryMetadataRepository, parsed_records


class TestNormalizeHeader(unittest.TestCase):
    def test_ignores_case_and_punctuation(self) -> None:
        self.assertEqual(normalize_header(" Account-ID "), "accountid")
        self.assertEqual(normalize_header("account_id"), normalize_header("AccountId"))


class TestRecordNormalizer(unittest.TestCase):
    def setUp(self) -> None:
        self.normalizer = RecordNormalizer(entity_type="account")
        self.file_metadata = FileMetadata(
            file_name="accounts.csv",
            file_path="accounts.csv",
            file_size_bytes=10,
            file_format="csv",
        )

    def test_resolve_driving_field_returns_parsed_header(self) -> None:
        parsed = parsed_records(["Account-ID", "name"], [["A-1", "Alice"]])

        self.assertEqual(self.normalizer.resolve_driving_field(parsed, "account id"), "Account-ID")
        with self.assertRaises(DomainValidationError):
            self.normalizer.resolve_driving_field(parsed, "customer_no")

    def test_one_entity_per_record(self) -> None:
        parsed = parsed_records(
            ["account_id", "name"],
            [["A-1", "Alice"], ["A-2", "Bob"]],
            self.file_metadata,
        )

        entities = self.normalizer.normalize(parsed, "account_id")

        self.assertEqual([entity.driving_field_value for entity in entities], ["A-1", "A-2"])
        self.assertEqual(entities[0].attributes, {"account_id": "A-1", "name": "Alice"})
        self.assertEqual(entities[0].entity_type, "account")
        self.assertEqual(entities[0].source_file_id, self.file_metadata.file_id)

    def test_driving_field_lookup_is_insensitive(self) -> None:
        parsed = parsed_records(["Account ID", "name"], [["A-1", "Alice"]])
        entities = self.normalizer.normalize(parsed, "account_id")
        self.assertEqual(entities[0].driving_field_value, "A-1")

    def test_blank_strings_become_none(self) -> None:
        parsed = parsed_records(["id", "name"], [[" 7 ", "   "]])
        entity = self.normalizer.normalize(parsed, "id")[0]
        self.assertEqual(entity.driving_field_value, "7")
        self.assertIsNone(entity.attributes["name"])

    def test_missing_driving_value_raises(self) -> None:
        parsed = parsed_records(["id", "name"], [["1", "a"], ["", "b"]])
        with self.assertRaises(DomainValidationError):
            self.normalizer.normalize(parsed, "id")

    def test_unknown_driving_field_raises(self) -> None:
        parsed = parsed_records(["id"], [["1"]])
        with self.assertRaises(DomainValidationError):
            self.normalizer.normalize(parsed, "customer_number")

    def test_duplicate_driving_values_rejected(self) -> None:
        parsed = parsed_records(["id"], [["1"], ["1"]])
        entities = self.normalizer.normalize(parsed, "id")
        with self.assertRaises(DuplicateError):
            self.normalizer.validate_normalization(entities)

    def test_required_fields_enforced_from_metadata(self) -> None:
        repo = InMemoryMetadataRepository(
            fields=[FieldMetadata(field_name="name", display_name="Name", field_type="string", is_required=True)]
        )
        normalizer = RecordNormalizer(metadata_repository=repo)
        entities = normalizer.normalize(parsed_records(["id", "name"], [["1", None]]), "id")

        with self.assertRaises(DomainValidationError) as ctx:
            normalizer.validate_normalization(entities)
        self.assertEqual(ctx.exception.field, "name")


class TestDetectDrivingField(unittest.TestCase):
    def test_prefers_identifier_like_column(self) -> None:
        parsed = parsed_records(
            ["name", "account_id", "country"],
            [["Alice", "A-1", "DE"], ["Bob", "A-2", "FR"]],
        )
        self.assertEqual(RecordNormalizer().detect_driving_field(parsed), "account_id")

    def test_alias_beats_identifier(self) -> None:
        parsed = parsed_records(["account_id", "email"], [["A-1", "a@x"], ["A-2", "b@x"]])
        normalizer = RecordNormalizer(driving_field_aliases=["Email"])
        self.assertEqual(normalizer.detect_driving_field(parsed), "email")

    def test_skips_columns_with_duplicates_or_blanks(self) -> None:
        parsed = parsed_records(
            ["id", "code", "name"],
            [["1", "X", "Alice"], ["1", None, "Bob"]],
        )
        self.assertEqual(RecordNormalizer().detect_driving_field(parsed), "name")

    def test_no_candidate_raises(self) -> None:
        parsed = parsed_records(["id"], [["1"], ["1"]])
        with self.assertRaises(DomainValidationError):
            RecordNormalizer().detect_driving_field(parsed)

    def test_no_records_raises(self) -> None:
        with self.assertRaises(DomainValidationError):
            RecordNormalizer().detect_driving_field(parsed_records(["id"], []))


if __name__ == "__main__":
    unittest.main()
