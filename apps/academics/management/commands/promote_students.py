"""
Management command to run year-end promotion for a school.

Schedulers should pass --cron: a scheduled run for a year that has already
been processed exits without changing anything.
"""

import uuid

from django.core.management.base import BaseCommand, CommandError

from apps.academics.promotion import PromotionService, summarize_logs
from apps.core.exceptions import CoreServiceError
from apps.core.models import School


class Command(BaseCommand):
    help = 'Promote, repeat or graduate the students of a school at the end of an academic year'

    def add_arguments(self, parser):
        parser.add_argument(
            '--school',
            required=True,
            help='School code or id',
        )
        parser.add_argument(
            '--year',
            type=int,
            required=True,
            help='Academic year being closed, e.g. 2024',
        )
        parser.add_argument(
            '--cron',
            action='store_true',
            help='Mark the run as scheduled (skipped when the year was already processed)',
        )

    def handle(self, *args, **options):
        school = find_school(options['school'])

        try:
            summary = PromotionService().promote_students(school, options['year'], cron_job=options['cron'])
        except CoreServiceError as exc:
            raise CommandError(exc.message)

        if summary.already_processed:
            self.stdout.write(
                self.style.WARNING(f'Promotion for {school} {options["year"]} was already processed')
            )
            return

        for outcome, count in sorted(summary.counts.items()):
            self.stdout.write(f'  {outcome}: {count}')

        logged = summarize_logs(school, options['year'])
        self.stdout.write(
            self.style.SUCCESS(
                f'\nSummary: {summary.processed} enrollment(s) processed, '
                f'{sum(logged.values())} promotion log(s) recorded for {options["year"]}'
            )
        )


def find_school(value):
    """Look a school up by code, falling back to its id."""
    school = School.objects.filter(code=value.strip().upper(), is_deleted=False).first()
    if school is None and _is_uuid(value):
        school = School.objects.filter(pk=value, is_deleted=False).first()
    if school is None:
        raise CommandError(f'School "{value}" not found')
    return school


def _is_uuid(value):
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
