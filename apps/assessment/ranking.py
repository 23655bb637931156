# apps/assessment/ranking.py
"""
Ranking of aggregated entities (report cards, teacher performance records,
class performance rows).

Student, teacher and class scopes use a fractional rank, position divided by
the size of the whole population, where smaller is better. Every other scope
uses competition ranking (1, 1, 3).
"""

import logging
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from apps.academics.models import Class
from apps.core.exceptions import PreconditionError, RankingError

from .models import ReportCard

logger = logging.getLogger(__name__)
User = get_user_model()

SCORE_FIELDS = ('total_score', 'average_score', 'average')
FRACTIONAL_SCOPES = ('student', 'teacher', 'class')
UNPERSISTED_SCOPES = ('class',)
FOUR_PLACES = Decimal('0.0001')


def _get(entity, name, default=None):
    if isinstance(entity, dict):
        return entity.get(name, default)
    return getattr(entity, name, default)


def _set_rank(entity, rank):
    if isinstance(entity, dict):
        entity['rank'] = rank
    else:
        entity.rank = rank


def resolve_score(entity):
    """First of total_score, average_score, average that is present."""
    for field in SCORE_FIELDS:
        value = _get(entity, field)
        if value is not None:
            return Decimal(value)
    return None


def fractional_rank(position, population) -> Decimal:
    if not population:
        return Decimal('0')
    return (Decimal(position) / Decimal(population)).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def _order(entities):
    """Split into (scored entities sorted best first, unscored entities)."""
    scored = [entity for entity in entities if resolve_score(entity) is not None]
    unscored = [entity for entity in entities if resolve_score(entity) is None]
    # sorted() is stable, so ties keep their input order
    return sorted(scored, key=resolve_score, reverse=True), unscored


def _class_key(entity):
    return (
        _get(entity, 'class_enrolled_id') or _get(entity, 'class_id'),
        _get(entity, 'academic_year'),
        _get(entity, 'term_id'),
    )


def _rank_students(entities):
    partitions = OrderedDict()
    for entity in entities:
        partitions.setdefault(_class_key(entity), []).append(entity)

    for (class_id, academic_year, term_id), members in partitions.items():
        population = ReportCard.objects.filter(
            class_enrolled_id=class_id,
            academic_year=academic_year,
            term_id=term_id,
            is_deleted=False,
        ).count()
        ordered, unscored = _order(members)
        for position, entity in enumerate(ordered, start=1):
            _set_rank(entity, fractional_rank(position, population))
        for entity in unscored:
            _set_rank(entity, Decimal('0'))


def _rank_fractional(entities, population):
    ordered, unscored = _order(entities)
    for position, entity in enumerate(ordered, start=1):
        _set_rank(entity, fractional_rank(position, population))
    for entity in unscored:
        _set_rank(entity, Decimal('0'))


def _rank_competition(entities):
    ordered, unscored = _order(entities)
    previous_score = None
    current_rank = 0
    for index, entity in enumerate(ordered):
        score = resolve_score(entity)
        if score != previous_score:
            current_rank = index + 1
            previous_score = score
        _set_rank(entity, Decimal(current_rank))
    for entity in unscored:
        _set_rank(entity, Decimal('0'))


def _require_school(scope, school):
    if school is None:
        raise PreconditionError(f"Ranking {scope} scope requires a school", scope=scope)


def rank_entities(entities, scope, school=None, persist=True):
    """
    Compute a rank for every entity and, for persisting scopes, save it.

    Returns the same list. If saving fails part way, RankingError carries the
    list with the ranks applied so far.
    """
    entities = list(entities)
    if not entities:
        return entities

    if scope == 'student':
        _rank_students(entities)
    elif scope == 'teacher':
        _require_school(scope, school)
        _rank_fractional(entities, User.objects.active_teachers(school).count())
    elif scope == 'class':
        _require_school(scope, school)
        population = Class.objects.filter(school=school, is_active=True, is_deleted=False).count()
        _rank_fractional(entities, population)
    else:
        _rank_competition(entities)

    if persist and scope not in UNPERSISTED_SCOPES:
        _persist(entities, scope)
    return entities


def _persist(entities, scope):
    for entity in entities:
        if not hasattr(entity, 'save'):
            continue
        try:
            entity.save(update_fields=['rank'])
        except DatabaseError as exc:
            logger.error("Failed to save %s rank for %s: %s", scope, entity, exc)
            raise RankingError(f"Failed to save {scope} ranks: {exc}", entities=entities, scope=scope)
