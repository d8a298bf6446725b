"""
Tests for date-scoped accession and order number generation.
"""
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from ris.schemas.enums import AccessionScheme
from ris.services import identifier_service


class TestFormatting:
    """Pure formatting and parsing helpers."""

    def test_contiguous_accession_number(self):
        assert identifier_service.format_accession_number(
            "DX", date(2024, 6, 1), 1, AccessionScheme.CONTIGUOUS
        ) == "DX20240601001"

    def test_dashed_accession_number(self):
        assert identifier_service.format_accession_number(
            "ct", date(2024, 6, 1), 12, AccessionScheme.DASHED
        ) == "CT-20240601-012"

    def test_sequence_grows_past_padding_width(self):
        assert identifier_service.format_accession_number(
            "DX", date(2024, 6, 1), 1000, AccessionScheme.CONTIGUOUS
        ) == "DX202406011000"

    def test_order_number(self):
        assert identifier_service.format_order_number(date(2024, 6, 1), 7) == "ORD-20240601-0007"

    @pytest.mark.parametrize("identifier, expected", [
        (None, 0),
        ("DX20240601007", 7),
        ("DX20240601ABC", 0),
        ("CT20240601007", 0),
    ])
    def test_parse_sequence(self, identifier, expected):
        assert identifier_service.parse_sequence(identifier, "DX20240601") == expected

    def test_scheme_defaults_to_setting(self):
        with patch.object(identifier_service.settings, "ACCESSION_NUMBER_SCHEME", "DASHED"):
            assert identifier_service.resolve_scheme() == AccessionScheme.DASHED
        assert identifier_service.resolve_scheme(AccessionScheme.CONTIGUOUS) == AccessionScheme.CONTIGUOUS

    def test_ris_today_uses_configured_zone(self):
        with patch.object(identifier_service.settings, "RIS_TIMEZONE", "Asia/Jakarta"):
            assert isinstance(identifier_service.ris_today(), date)


class TestCollisionDetection:

    def _integrity_error(self, message):
        return IntegrityError("INSERT ...", {}, Exception(message))

    def test_accession_collision(self):
        error = self._integrity_error("UNIQUE constraint failed: detail_orders.accession_number")
        assert identifier_service.is_identifier_collision(error) is True

    def test_order_number_collision(self):
        error = self._integrity_error('duplicate key value violates unique constraint "uq_orders_order_number"')
        assert identifier_service.is_identifier_collision(error) is True

    def test_other_integrity_error_is_not_a_collision(self):
        error = self._integrity_error("FOREIGN KEY constraint failed")
        assert identifier_service.is_identifier_collision(error) is False


class TestStoreBackedSequences:
    """Sequences derived from what is already stored."""

    def test_first_of_the_day_starts_at_one(self, db, order_day):
        assert identifier_service.generate_accession_number(
            db, "DX", on=order_day, scheme=AccessionScheme.CONTIGUOUS
        ) == "DX20240601001"
        assert identifier_service.generate_order_number(db, on=order_day) == "ORD-20240601-0001"

    def test_next_follows_highest_stored(self, db, order_day):
        with patch.object(identifier_service.crud.detail_order, "last_accession_number", return_value="DX20240601009"):
            assert identifier_service.next_accession_sequence(
                db, "DX", on=order_day, scheme=AccessionScheme.CONTIGUOUS
            ) == 10

    def test_unparseable_stored_suffix_restarts_at_one(self, db, order_day):
        with patch.object(identifier_service.crud.order, "last_order_number", return_value="ORD-20240601-XYZ"):
            assert identifier_service.next_order_sequence(db, on=order_day) == 1
