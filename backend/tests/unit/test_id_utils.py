"""
Unit tests for identifier formatting and QR payloads.
"""
import pytest
from datetime import datetime, timezone

from utils.id_utils import ROLE_PREFIXES, format_identifier, sequence_key
from utils.qr_utils import build_order_qr_payload, parse_order_qr_payload


class TestFormatIdentifier:

    def test_branch_scoped(self):
        assert format_identifier("ORD", 7, "BR001") == "BR001-ORD007"

    def test_global(self):
        assert format_identifier("DOC", 7) == "DOC007"
        assert format_identifier("BR", 1) == "BR001"

    def test_width_is_a_minimum(self):
        assert format_identifier("ORD", 1000, "BR001") == "BR001-ORD1000"

    def test_rejects_non_positive_sequence(self):
        with pytest.raises(ValueError):
            format_identifier("ORD", 0, "BR001")

    def test_every_role_has_a_prefix(self):
        from models.enums import UserRole
        assert set(ROLE_PREFIXES) == {role.value for role in UserRole}


class TestSequenceKey:

    def test_branch_scoped(self):
        assert sequence_key("order", "BR001") == "orderId_BR001"

    def test_global(self):
        assert sequence_key("doctor") == "doctorId"

    def test_branches_do_not_share_counters(self):
        assert sequence_key("patient", "BR001") != sequence_key("patient", "BR002")


class TestOrderQrPayload:

    def test_build(self):
        created_at = datetime(2024, 10, 16, 4, 30, tzinfo=timezone.utc)
        payload = build_order_qr_payload("BR001-ORD007", "BR001-PAT042", created_at)

        assert payload == f"HEAL-BR001-ORD007-BR001-PAT042-{int(created_at.timestamp() * 1000)}"

    def test_parse_recovers_dashed_codes(self):
        created_at = datetime(2024, 10, 16, 4, 30, tzinfo=timezone.utc)
        payload = build_order_qr_payload("BR001-ORD007", "BR001-PAT042", created_at)

        parsed = parse_order_qr_payload(payload)

        assert parsed is not None
        assert parsed["order_code"] == "BR001-ORD007"
        assert parsed["patient_code"] == "BR001-PAT042"
        assert parsed["created_at"] == created_at

    @pytest.mark.parametrize("payload", [
        "",
        "HEAL-",
        "XYZ-BR001-ORD007-BR001-PAT042-1729053000000",
        "HEAL-BR001-ORD007-BR001-PAT042",
        "HEAL-BR001-VIS007-BR001-PAT042-1729053000000",
    ])
    def test_parse_rejects_other_strings(self, payload):
        assert parse_order_qr_payload(payload) is None
