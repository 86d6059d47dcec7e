"""
Dashboard aggregation.

Recomputes a user's summary statistics and recent-activity lists from the
full set of stored records on every call. Nothing is cached.
"""

from typing import Dict

from animal_impact.core.errors import NotFoundError
from animal_impact.core.records import CAMPAIGNS, CONVERSIONS, DONATIONS, MEDIA, RECORD_KINDS, sort_key
from animal_impact.decimal_utils import sum_decimal, to_json_number
from animal_impact.utils.constants import ANIMALS_PER_CONVERSION, RECENT_LIMIT


class DashboardService:
    def __init__(self, store, recent_limit: int = RECENT_LIMIT):
        self.store = store
        self.recent_limit = recent_limit

    def get_dashboard(self, user_id: int) -> Dict:
        """
        Build the dashboard payload for one user.

        Returns:
            {'user': {...}, 'stats': {...}, 'recent': {...}}

        Raises:
            NotFoundError: the user no longer exists
        """
        user = self.store.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError('User not found')

        records = {key: self.store.list_records(kind, user_id) for key, kind in RECORD_KINDS.items()}

        donations = records[DONATIONS.key]
        conversions = records[CONVERSIONS.key]
        media = records[MEDIA.key]
        campaigns = records[CAMPAIGNS.key]

        stats = {
            'totalDonations': to_json_number(sum_decimal(d.get('amount') for d in donations)),
            'conversionCount': len(conversions),
            'mediaCount': len(media),
            'totalReach': sum(int(m.get('reach_estimate') or 0) for m in media),
            'campaignCount': len(campaigns),
            'animalsImpact': len(conversions) * ANIMALS_PER_CONVERSION,
        }

        recent = {}
        for key, kind in RECORD_KINDS.items():
            # Backends already order rows; re-sorting keeps the contract backend-independent
            rows = sorted(records[key], key=sort_key(kind), reverse=True)
            recent[key] = rows[:self.recent_limit]

        return {
            'user': {
                'id': user['id'],
                'email': user['email'],
                'name': user['name'],
                'created_at': user.get('created_at'),
            },
            'stats': stats,
            'recent': recent,
        }
