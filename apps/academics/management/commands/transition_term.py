"""
Management command to move a school's students into the next term.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.academics.promotion import PromotionService
from apps.core.exceptions import CoreServiceError

from .promote_students import find_school


class Command(BaseCommand):
    help = 'Transition active enrollments of a finished term into the next term'

    def add_arguments(self, parser):
        parser.add_argument('--school', required=True, help='School code or id')
        parser.add_argument('--year', type=int, required=True, help='Academic year, e.g. 2024')
        parser.add_argument(
            '--term',
            type=int,
            required=True,
            choices=[1, 2],
            help='Number of the term that has just ended',
        )
        parser.add_argument(
            '--cron',
            action='store_true',
            help='Mark the run as scheduled (skipped when the term was already processed)',
        )

    def handle(self, *args, **options):
        school = find_school(options['school'])

        try:
            summary = PromotionService().transition_students_to_next_term(
                school, options['year'], options['term'], cron_job=options['cron']
            )
        except CoreServiceError as exc:
            raise CommandError(exc.message)

        if summary.already_processed:
            self.stdout.write(self.style.WARNING(f'Term {options["term"]} was already processed'))
            return

        for outcome, count in sorted(summary.counts.items()):
            self.stdout.write(f'  {outcome}: {count}')
        self.stdout.write(
            self.style.SUCCESS(
                f'Term {options["term"]} transition completed: {summary.processed} enrollment(s) processed'
            )
        )
