"""
Record kinds and input validation.

Every contribution a user can log (donation, vegan conversion, media share,
campaign participation) is described by a RecordKind: its storage table,
the fields a request must carry, optional fields with their defaults and
the record's own date field used for "most recent" ordering.

RecordValidator turns a raw JSON body into the exact column values that
the storage backends persist.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_DOWN
from typing import Any, Dict, List, Tuple

from animal_impact.core.errors import ValidationError
from animal_impact.decimal_utils import parse_decimal

# Largest value an SQLite INTEGER column holds
MAX_REACH = 2 ** 63 - 1


@dataclass(frozen=True)
class RecordKind:
    key: str
    table: str
    columns: Tuple[str, ...]
    required: Tuple[str, ...]
    defaults: Dict[str, Any] = field(default_factory=dict)
    date_field: str = 'date'
    required_message: str = ''
    success_message: str = ''


DONATIONS = RecordKind(
    key='donations',
    table='donations',
    columns=('organization', 'amount', 'date', 'notes'),
    required=('organization', 'amount', 'date'),
    defaults={'notes': ''},
    required_message='Organization, amount, and date are required',
    success_message='Donation recorded successfully',
)

CONVERSIONS = RecordKind(
    key='conversions',
    table='vegan_conversions',
    columns=('person_name', 'conversion_date', 'influence_type', 'notes'),
    required=('person_name', 'conversion_date'),
    defaults={'influence_type': '', 'notes': ''},
    date_field='conversion_date',
    required_message='Person name and conversion date are required',
    success_message='Conversion recorded successfully',
)

MEDIA = RecordKind(
    key='media',
    table='media_shared',
    columns=('platform', 'content_type', 'reach_estimate', 'date', 'url', 'notes'),
    required=('platform', 'content_type', 'date'),
    defaults={'reach_estimate': 0, 'url': '', 'notes': ''},
    required_message='Platform, content type, and date are required',
    success_message='Media shared recorded successfully',
)

CAMPAIGNS = RecordKind(
    key='campaigns',
    table='campaigns',
    columns=('campaign_name', 'organization', 'participation_type', 'date', 'impact_description'),
    required=('campaign_name', 'participation_type', 'date'),
    defaults={'organization': '', 'impact_description': ''},
    required_message='Campaign name, participation type, and date are required',
    success_message='Campaign participation recorded successfully',
)

RECORD_KINDS: Dict[str, RecordKind] = {
    kind.key: kind for kind in (DONATIONS, CONVERSIONS, MEDIA, CAMPAIGNS)
}


def get_kind(kind) -> RecordKind:
    """Accept a RecordKind or its key."""
    if isinstance(kind, RecordKind):
        return kind
    try:
        return RECORD_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown record kind: {kind!r}")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def timestamp_now() -> str:
    """UTC creation timestamp with microseconds, sortable as text."""
    return datetime.now(timezone.utc).isoformat(timespec='microseconds')


def sort_key(kind: RecordKind):
    """Ordering key for "most recent first": own date, then created_at, then id."""
    def _key(record: dict):
        return (
            str(record.get(kind.date_field) or ''),
            str(record.get('created_at') or ''),
            int(record.get('id') or 0),
        )
    return _key


class RecordValidator:
    """Validates and normalizes record payloads before they reach storage."""

    @classmethod
    def missing_fields(cls, kind, payload: dict) -> List[str]:
        kind = get_kind(kind)
        return [name for name in kind.required if is_blank(payload.get(name))]

    @classmethod
    def validate(cls, kind, payload: dict) -> Tuple[bool, List[str]]:
        """
        Validate a single record payload.

        Returns:
            (is_valid, error_list)
        """
        try:
            cls.clean(kind, payload)
        except ValidationError as e:
            return False, [e.message]
        return True, []

    @classmethod
    def clean(cls, kind, payload: dict) -> Dict[str, Any]:
        """
        Produce storage-ready column values for a record.

        Raises:
            ValidationError: required fields missing or values malformed
        """
        kind = get_kind(kind)
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')

        missing = cls.missing_fields(kind, payload)
        if missing:
            raise ValidationError(kind.required_message, missing=missing)

        cleaned = {}
        for name in kind.columns:
            value = payload.get(name)
            if name == 'amount':
                cleaned[name] = cls._clean_amount(value)
            elif name == 'reach_estimate':
                cleaned[name] = cls._clean_reach(value)
            elif name == kind.date_field:
                cleaned[name] = cls._clean_date(name, value)
            elif is_blank(value):
                cleaned[name] = kind.defaults.get(name, '')
            else:
                cleaned[name] = cls._clean_text(name, value)
        return cleaned

    @staticmethod
    def _clean_text(name: str, value: Any) -> str:
        if isinstance(value, bool) or isinstance(value, (dict, list)):
            raise ValidationError(f"{name} must be a string")
        return str(value).strip()

    @staticmethod
    def _clean_amount(value: Any) -> float:
        try:
            amount = parse_decimal(value)
        except ValueError:
            raise ValidationError('Amount must be a number')
        if amount < 0:
            raise ValidationError('Amount must not be negative')
        value = float(amount)
        if not math.isfinite(value):
            raise ValidationError('Amount is too large')
        return value

    @staticmethod
    def _clean_reach(value: Any) -> int:
        # Unparseable estimates fall back to 0 rather than failing the request
        if is_blank(value) or isinstance(value, bool):
            return 0
        try:
            reach = parse_decimal(value).to_integral_value(rounding=ROUND_DOWN)
        except ValueError:
            return 0
        if reach < 0:
            raise ValidationError('Reach estimate must not be negative')
        if reach > MAX_REACH:
            raise ValidationError('Reach estimate is too large')
        return int(reach)

    @staticmethod
    def _clean_date(name: str, value: Any) -> str:
        """Parse an ISO date and return it as canonical YYYY-MM-DD text."""
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")
        return parsed.date().isoformat()
