"""
================================================================================
TEST: Record Kinds and Input Validation
================================================================================

Validates how raw JSON bodies become storage-ready record fields.

Test Coverage:
    - Required field detection and error messages
    - Optional field defaults
    - Donation amount parsing (non-negative, zero allowed)
    - Reach estimate coercion
    - ISO date checks
    - "Most recent first" ordering key

Author: Animal Impact Team
================================================================================
"""

from datetime import date, datetime

import pytest

from animal_impact.core.errors import ValidationError
from animal_impact.core.records import (
    CAMPAIGNS,
    CONVERSIONS,
    DONATIONS,
    MEDIA,
    RECORD_KINDS,
    RecordValidator,
    get_kind,
    sort_key,
)


def test_record_kind_registry():
    assert set(RECORD_KINDS) == {'donations', 'conversions', 'media', 'campaigns'}
    assert get_kind('media') is MEDIA
    assert get_kind(CONVERSIONS) is CONVERSIONS
    assert CONVERSIONS.date_field == 'conversion_date'
    assert CONVERSIONS.table == 'vegan_conversions'
    assert MEDIA.table == 'media_shared'


def test_unknown_kind():
    with pytest.raises(ValueError):
        get_kind('pets')


class TestRequiredFields:

    def test_missing_amount_names_all_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            RecordValidator.clean(DONATIONS, {'organization': 'X', 'date': '2024-01-01'})
        assert exc.value.message == 'Organization, amount, and date are required'
        assert exc.value.missing == ['amount']
        assert exc.value.status_code == 400

    def test_blank_strings_count_as_missing(self):
        missing = RecordValidator.missing_fields(CAMPAIGNS, {'campaign_name': '  ', 'date': '2024-01-01'})
        assert missing == ['campaign_name', 'participation_type']

    @pytest.mark.parametrize('kind, message', [
        (CONVERSIONS, 'Person name and conversion date are required'),
        (MEDIA, 'Platform, content type, and date are required'),
        (CAMPAIGNS, 'Campaign name, participation type, and date are required'),
    ])
    def test_messages_per_kind(self, kind, message):
        with pytest.raises(ValidationError) as exc:
            RecordValidator.clean(kind, {})
        assert exc.value.message == message

    def test_non_object_body(self):
        with pytest.raises(ValidationError):
            RecordValidator.clean(DONATIONS, ['not', 'a', 'dict'])

    def test_validate_returns_tuple(self):
        ok, errors = RecordValidator.validate(DONATIONS, {})
        assert ok is False
        assert errors == ['Organization, amount, and date are required']
        ok, errors = RecordValidator.validate(
            DONATIONS, {'organization': 'X', 'amount': 1, 'date': '2024-01-01'}
        )
        assert ok is True
        assert errors == []


class TestCleaning:

    def test_defaults_for_optional_fields(self):
        fields = RecordValidator.clean(MEDIA, {'platform': 'TikTok', 'content_type': 'Video', 'date': '2024-02-01'})
        assert fields == {
            'platform': 'TikTok',
            'content_type': 'Video',
            'reach_estimate': 0,
            'date': '2024-02-01',
            'url': '',
            'notes': '',
        }

    def test_amount_zero_allowed(self):
        fields = RecordValidator.clean(DONATIONS, {'organization': 'X', 'amount': 0, 'date': '2024-01-01'})
        assert fields['amount'] == 0

    def test_amount_string_parsed(self):
        fields = RecordValidator.clean(DONATIONS, {'organization': 'X', 'amount': '12.50', 'date': '2024-01-01'})
        assert fields['amount'] == 12.5

    @pytest.mark.parametrize('amount', [-5, 'ten', True, '1e400'])
    def test_bad_amounts_rejected(self, amount):
        with pytest.raises(ValidationError):
            RecordValidator.clean(DONATIONS, {'organization': 'X', 'amount': amount, 'date': '2024-01-01'})

    @pytest.mark.parametrize('raw, expected', [
        ('1200', 1200),
        (300, 300),
        (12.9, 12),
        ('lots', 0),
        ('', 0),
        (None, 0),
    ])
    def test_reach_coercion(self, raw, expected):
        payload = {'platform': 'X', 'content_type': 'Post', 'date': '2024-01-01', 'reach_estimate': raw}
        assert RecordValidator.clean(MEDIA, payload)['reach_estimate'] == expected

    def test_negative_reach_rejected(self):
        payload = {'platform': 'X', 'content_type': 'Post', 'date': '2024-01-01', 'reach_estimate': -1}
        with pytest.raises(ValidationError):
            RecordValidator.clean(MEDIA, payload)

    def test_reach_beyond_integer_range_rejected(self):
        payload = {'platform': 'X', 'content_type': 'Post', 'date': '2024-01-01', 'reach_estimate': '1e30'}
        with pytest.raises(ValidationError):
            RecordValidator.clean(MEDIA, payload)

    @pytest.mark.parametrize('raw, expected', [
        ('2024-01-01', '2024-01-01'),
        (' 2024-02-03 ', '2024-02-03'),
        ('2024-01-01T09:30:00', '2024-01-01'),
        (date(2024, 5, 6), '2024-05-06'),
        (datetime(2024, 5, 6, 12, 0), '2024-05-06'),
    ])
    def test_dates_stored_as_canonical_text(self, raw, expected):
        fields = RecordValidator.clean(DONATIONS, {'organization': 'X', 'amount': 1, 'date': raw})
        assert fields['date'] == expected

    @pytest.mark.parametrize('bad_date', ['yesterday', '2024-13-01', 20240101])
    def test_bad_dates_rejected(self, bad_date):
        with pytest.raises(ValidationError):
            RecordValidator.clean(CONVERSIONS, {'person_name': 'Bob', 'conversion_date': bad_date})

    def test_text_fields_trimmed(self):
        fields = RecordValidator.clean(
            CONVERSIONS, {'person_name': '  Bob  ', 'conversion_date': '2024-01-01', 'notes': ' hi '}
        )
        assert fields['person_name'] == 'Bob'
        assert fields['notes'] == 'hi'


def test_sort_key_orders_by_date_then_created_then_id():
    rows = [
        {'id': 1, 'date': '2024-01-01', 'created_at': '2024-01-05T00:00:00.000001+00:00'},
        {'id': 2, 'date': '2024-03-01', 'created_at': '2024-03-01T00:00:00.000001+00:00'},
        {'id': 3, 'date': '2024-01-01', 'created_at': '2024-01-05T00:00:00.000002+00:00'},
        {'id': 4, 'date': '2024-01-01', 'created_at': '2024-01-05T00:00:00.000002+00:00'},
    ]
    ordered = sorted(rows, key=sort_key(DONATIONS), reverse=True)
    assert [r['id'] for r in ordered] == [2, 4, 3, 1]
