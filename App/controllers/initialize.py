import csv
import logging
import os

from App.controllers.activity import create_activity
from App.controllers.roster import create_staff, create_student
from App.database import db

logger = logging.getLogger(__name__)

__all__ = ['initialize', 'DEFAULT_ACTIVITIES']

SAMPLE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'sample')

DEFAULT_ACTIVITIES = (
    ('Morning Meeting', '🌅', 20, 'routine'),
    ('Reading Groups', '📚', 30, 'academic'),
    ('Math Centers', '🔢', 30, 'academic'),
    ('Social Skills', '🤝', 25, 'social'),
    ('Sensory Break', '🧘', 15, 'therapy'),
)


def _split_ids(value):
    return [item.strip() for item in (value or '').split(';') if item.strip()]


def _blank_to_none(value):
    value = (value or '').strip()
    return value or None


def initialize(sample_dir=SAMPLE_DIR):
    """
    Drop and recreate every table, then seed the default activities and,
    unless SKIP_SAMPLE_ROSTER is set, the sample roster.
    """
    logger.info("Starting database initialization", extra={'event': 'db_initialize_started'})

    db.drop_all()
    db.create_all()

    for name, icon, duration, category in DEFAULT_ACTIVITIES:
        create_activity(name=name, icon=icon, duration=duration, category=category)

    skip_roster = os.environ.get('SKIP_SAMPLE_ROSTER', '').lower() in ['1', 'true', 'yes']
    if skip_roster:
        logger.info(
            "Skipping sample roster seeding due to SKIP_SAMPLE_ROSTER flag",
            extra={'event': 'db_initialize_roster_skipped'},
        )
    else:
        create_sample_students(os.path.join(sample_dir, 'students.csv'))
        create_sample_staff(os.path.join(sample_dir, 'staff.csv'))

    logger.info("Database initialized", extra={'event': 'db_initialize_completed', 'roster_skipped': skip_roster})


def create_sample_students(path):
    created = 0
    with open(path, newline='', encoding='utf-8') as csvfile:
        for row in csv.DictReader(csvfile):
            create_student(
                id=row['id'],
                name=row['name'],
                skill_level=_blank_to_none(row.get('skill_level')),
                working_style=_blank_to_none(row.get('working_style')),
                preferred_partners=_split_ids(row.get('preferred_partners')),
                avoid_partners=_split_ids(row.get('avoid_partners')),
            )
            created += 1
    logger.info(f"Created {created} sample students", extra={'event': 'db_seed_students', 'count': created})
    return created


def create_sample_staff(path):
    created = 0
    with open(path, newline='', encoding='utf-8') as csvfile:
        for row in csv.DictReader(csvfile):
            create_staff(
                id=row['id'],
                name=row['name'],
                role=row.get('role') or '',
                photo=_blank_to_none(row.get('photo')),
            )
            created += 1
    logger.info(f"Created {created} sample staff", extra={'event': 'db_seed_staff', 'count': created})
    return created
