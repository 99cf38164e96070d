"""
Unit tests for record encoding.

Tests cover:
- Compact, bounded encoding
- u64 range checks
- Worst-case payload validation
- Malformed input
"""

import pytest

from mintdb.record_server.errors import RecordEncodingError, RecordTooLargeError
from mintdb.record_server.records.codec import (
    MAX_RECORD_SIZE,
    U64_MAX,
    check_payload,
    decode_record,
    encode_record,
)
from mintdb.record_server.records.types import Record, RecordPayload


def make_record(**overrides):
    fields = {
        "id": 7,
        "title": "Blue Train",
        "creator": "John Coltrane",
        "collection": "Blue Train",
        "external_reference": "ipfs://bafy/blue-train.json",
        "price": 100,
        "created_at": 1_700_000_000_000_000_000,
        "updated_at": None,
    }
    fields.update(overrides)
    return Record(**fields)


def make_payload(**overrides):
    fields = {
        "title": "Giant Steps",
        "creator": "John Coltrane",
        "collection": "Giant Steps",
        "external_reference": "ipfs://bafy/giant-steps.json",
        "price": 250,
    }
    fields.update(overrides)
    return RecordPayload(**fields)


class TestEncodeRecord:
    """Tests for encode_record / decode_record."""

    def test_decode_restores_record(self):
        """Decoding returns an equal record, including absent updated_at."""
        record = make_record()
        assert decode_record(encode_record(record)) == record

    def test_updated_at_survives_encoding(self):
        record = make_record(updated_at=1_700_000_000_000_000_999)
        assert decode_record(encode_record(record)).updated_at == 1_700_000_000_000_000_999

    def test_encoding_is_deterministic(self):
        """Same record always encodes to same bytes."""
        assert encode_record(make_record()) == encode_record(make_record())

    def test_unicode_fields(self):
        record = make_record(title="Kind of Blüe ♪", creator="マイルス")
        assert decode_record(encode_record(record)) == record

    def test_oversize_record_rejected(self):
        """Oversize record fails instead of being truncated."""
        record = make_record(title="x" * MAX_RECORD_SIZE)

        with pytest.raises(RecordTooLargeError) as exc_info:
            encode_record(record)

        assert exc_info.value.size > MAX_RECORD_SIZE
        assert exc_info.value.max_size == MAX_RECORD_SIZE
        assert exc_info.value.code == "RECORD_TOO_LARGE"

    def test_custom_max_size(self):
        record = make_record()
        size = len(encode_record(record))

        assert len(encode_record(record, max_size=size)) == size
        with pytest.raises(RecordTooLargeError):
            encode_record(record, max_size=size - 1)

    def test_negative_price_rejected(self):
        with pytest.raises(RecordEncodingError):
            encode_record(make_record(price=-1))

    def test_price_above_u64_rejected(self):
        with pytest.raises(RecordEncodingError):
            encode_record(make_record(price=U64_MAX + 1))

    def test_u64_max_price_accepted(self):
        record = make_record(price=U64_MAX)
        assert decode_record(encode_record(record)).price == U64_MAX

    def test_non_integer_price_rejected(self):
        with pytest.raises(RecordEncodingError):
            encode_record(make_record(price="10"))

    def test_bool_price_rejected(self):
        with pytest.raises(RecordEncodingError):
            encode_record(make_record(price=True))

    def test_lone_surrogate_rejected(self):
        """Text that cannot be UTF-8 encoded fails as a domain error."""
        with pytest.raises(RecordEncodingError) as exc_info:
            encode_record(make_record(creator="\ud800"))

        assert exc_info.value.code == "INVALID_RECORD"
        assert exc_info.value.details == {"field": "creator"}

    def test_non_string_title_rejected(self):
        with pytest.raises(RecordEncodingError):
            encode_record(make_record(title=None))

    def test_decode_garbage(self):
        with pytest.raises(RecordEncodingError):
            decode_record(b"\xff\xfe not json")

    def test_decode_missing_field(self):
        with pytest.raises(RecordEncodingError):
            decode_record(b'{"id": 1, "title": "A"}')


class TestCheckPayload:
    """Tests for check_payload."""

    def test_small_payload_accepted(self):
        check_payload(make_payload())

    def test_large_payload_rejected(self):
        with pytest.raises(RecordTooLargeError):
            check_payload(make_payload(external_reference="https://x/" + "a" * 2000))

    def test_accepted_payload_always_encodes(self):
        """A payload at the worst-case limit still encodes with any real id and time."""
        payload = make_payload(title="")
        worst = Record.from_payload(U64_MAX, payload, U64_MAX).with_payload(payload, U64_MAX)
        slack = MAX_RECORD_SIZE - len(encode_record(worst))
        payload = make_payload(title="t" * slack)

        check_payload(payload)
        record = Record.from_payload(0, payload, created_at=1)
        encode_record(record)
        encode_record(record.with_payload(payload, updated_at=2))

        with pytest.raises(RecordTooLargeError):
            check_payload(make_payload(title="t" * (slack + 1)))

    def test_invalid_price_rejected(self):
        with pytest.raises(RecordEncodingError):
            check_payload(make_payload(price=-5))

    def test_lone_surrogate_payload_rejected(self):
        with pytest.raises(RecordEncodingError):
            check_payload(make_payload(title="\udfff"))
