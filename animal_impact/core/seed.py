"""
Demo data seeding.

Creates the demo account with a spread of sample records so a fresh
install has something to show. Safe to call repeatedly: nothing happens
when the demo email already exists.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from animal_impact.core.records import CAMPAIGNS, CONVERSIONS, DONATIONS, MEDIA
from animal_impact.utils.constants import DEMO_EMAIL, DEMO_NAME, DEMO_PASSWORD

logger = logging.getLogger("animal_impact")


def demo_records(today: Optional[date] = None) -> dict:
    """Sample records keyed by record kind, dated relative to today."""
    today = today or date.today()
    now = today.isoformat()
    last_month = (today - timedelta(days=30)).isoformat()
    two_months_ago = (today - timedelta(days=60)).isoformat()

    return {
        DONATIONS.key: [
            {'organization': 'Animal Sanctuary Fund', 'amount': 200.00, 'date': now, 'notes': 'Monthly donation'},
            {'organization': 'Wildlife Protection Org', 'amount': 150.00, 'date': last_month, 'notes': 'One-time donation'},
            {'organization': 'Farm Animal Welfare', 'amount': 100.00, 'date': last_month, 'notes': 'Monthly donation'},
            {'organization': 'Humane Society', 'amount': 75.00, 'date': two_months_ago, 'notes': 'Holiday donation'},
            {'organization': 'Best Friends Animal Society', 'amount': 125.00, 'date': two_months_ago, 'notes': 'One-time donation'},
        ],
        CONVERSIONS.key: [
            {'person_name': 'Alice Smith', 'conversion_date': last_month,
             'influence_type': 'Documentary sharing', 'notes': 'Showed Dominion documentary'},
            {'person_name': 'Bob Johnson', 'conversion_date': last_month,
             'influence_type': 'Restaurant visit', 'notes': 'Took to vegan restaurant'},
            {'person_name': 'Sarah Wilson', 'conversion_date': two_months_ago,
             'influence_type': 'Recipe sharing', 'notes': 'Shared amazing vegan recipes'},
            {'person_name': 'Mike Davis', 'conversion_date': two_months_ago,
             'influence_type': 'Health discussion', 'notes': 'Discussed health benefits of plant-based diet'},
            {'person_name': 'Emma Brown', 'conversion_date': two_months_ago,
             'influence_type': 'Environmental facts', 'notes': 'Shared environmental impact data'},
            {'person_name': 'Chris Lee', 'conversion_date': two_months_ago,
             'influence_type': 'Cooking class', 'notes': 'Taught vegan cooking class'},
            {'person_name': 'Jessica Taylor', 'conversion_date': two_months_ago,
             'influence_type': 'Book recommendation',
             'notes': 'Recommended "Eating Animals" by Jonathan Safran Foer'},
            {'person_name': 'David Rodriguez', 'conversion_date': two_months_ago,
             'influence_type': 'Farm sanctuary visit', 'notes': 'Visited local farm sanctuary together'},
        ],
        MEDIA.key: [
            {'platform': 'Facebook', 'content_type': 'Video', 'reach_estimate': 500, 'date': now,
             'url': '', 'notes': 'Farm animal sanctuary video'},
            {'platform': 'Instagram', 'content_type': 'Story', 'reach_estimate': 200, 'date': now,
             'url': '', 'notes': 'Vegan meal photo'},
            {'platform': 'Twitter', 'content_type': 'Post', 'reach_estimate': 150, 'date': last_month,
             'url': '', 'notes': 'Animal rights awareness tweet'},
            {'platform': 'LinkedIn', 'content_type': 'Article', 'reach_estimate': 300, 'date': last_month,
             'url': '', 'notes': 'Corporate animal welfare article'},
            {'platform': 'TikTok', 'content_type': 'Video', 'reach_estimate': 1200, 'date': two_months_ago,
             'url': '', 'notes': 'Vegan recipe tutorial'},
            {'platform': 'YouTube', 'content_type': 'Video', 'reach_estimate': 850, 'date': two_months_ago,
             'url': '', 'notes': 'Documentary recommendation video'},
        ],
        CAMPAIGNS.key: [
            {'campaign_name': 'Factory Farm Ban Initiative', 'organization': 'Animal Justice League',
             'participation_type': 'Petition signing', 'date': last_month,
             'impact_description': 'Helped gather 1000 signatures for factory farming ban'},
            {'campaign_name': 'Wildlife Protection March', 'organization': 'Wildlife Defense Fund',
             'participation_type': 'Event participation', 'date': two_months_ago,
             'impact_description': 'Participated in march for wildlife corridor protection'},
            {'campaign_name': 'Corporate Cage-Free Campaign', 'organization': 'Mercy For Animals',
             'participation_type': 'Email campaign', 'date': two_months_ago,
             'impact_description': 'Sent 50 emails to corporations requesting cage-free policies'},
            {'campaign_name': 'Climate Action for Animals', 'organization': 'Animal Agriculture Reform Initiative',
             'participation_type': 'Social media advocacy', 'date': two_months_ago,
             'impact_description': 'Shared 25 posts about animal agriculture and climate change'},
            {'campaign_name': 'End Fur Fashion Campaign', 'organization': 'PETA',
             'participation_type': 'Store protests', 'date': two_months_ago,
             'impact_description': 'Participated in peaceful protests at 3 stores selling fur'},
        ],
    }


def seed_demo_data(store, auth_service, today: Optional[date] = None) -> bool:
    """
    Create the demo user and its sample records.

    Args:
        store: Storage backend
        auth_service: Used to hash the demo password
        today: Reference date for the sample records (defaults to today)

    Returns:
        True if data was created, False if the demo user already existed
    """
    if store.get_user_by_email(DEMO_EMAIL) is not None:
        logger.info("Demo user already exists, skipping seed")
        return False

    user = store.create_user(DEMO_EMAIL, DEMO_NAME, auth_service.hash_password(DEMO_PASSWORD))
    counts = {}
    for kind_key, rows in demo_records(today).items():
        for fields in rows:
            store.insert_record(kind_key, user['id'], fields)
        counts[kind_key] = len(rows)

    logger.info(
        f"Seeded demo user {DEMO_EMAIL}: {counts[DONATIONS.key]} donations, "
        f"{counts[CONVERSIONS.key]} conversions, {counts[MEDIA.key]} media shares, "
        f"{counts[CAMPAIGNS.key]} campaigns"
    )
    return True
