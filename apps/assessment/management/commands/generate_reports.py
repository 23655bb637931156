"""
Management command to regenerate report cards for a school.

Safe to run repeatedly: report cards are upserted and their results replaced.
"""

from django.core.management.base import BaseCommand, CommandError

from apps.academics.management.commands.promote_students import find_school
from apps.academics.models import Term
from apps.assessment.services import ReportService
from apps.core.exceptions import CoreServiceError


class Command(BaseCommand):
    help = 'Generate and rank report cards for every term of an academic year, or a single term'

    def add_arguments(self, parser):
        parser.add_argument('--school', required=True, help='School code or id')
        parser.add_argument('--year', type=int, required=True, help='Academic year, e.g. 2024')
        parser.add_argument(
            '--term',
            type=int,
            choices=[1, 2, 3],
            help='Only generate this term number',
        )
        parser.add_argument(
            '--teachers',
            action='store_true',
            help='Also generate teacher performance for each term',
        )
        parser.add_argument(
            '--passing-threshold',
            default=None,
            help='Informational passing threshold stored on the report cards (0-100)',
        )

    def handle(self, *args, **options):
        school = find_school(options['school'])
        terms = Term.objects.filter(school=school, academic_year=options['year'], is_deleted=False)
        if options['term']:
            terms = terms.filter(term_number=options['term'])
        if not terms.exists():
            raise CommandError(f'No terms recorded for {school} in {options["year"]}')

        service = ReportService()
        for term in terms.order_by('term_number'):
            try:
                cards = service.generate_term_report(
                    school, options['year'], term, passing_threshold=options['passing_threshold']
                )
                self.stdout.write(self.style.SUCCESS(f'{term}: {len(cards)} report card(s) generated'))
                if options['teachers']:
                    records = service.generate_teacher_report(school, options['year'], term)
                    self.stdout.write(f'{term}: {len(records)} teacher performance record(s)')
            except CoreServiceError as exc:
                raise CommandError(f'{term}: {exc.message}')

        self.stdout.write(self.style.SUCCESS('Report generation completed successfully!'))
