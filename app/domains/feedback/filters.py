"""Record filter engine.

Pure functions over an already fetched, newest-first collection. The caller
re-runs the filter whenever the collection or the configuration changes.
"""

from collections.abc import Callable, Sequence

from app.domains.feedback.models import FeedbackSubmission
from app.domains.feedback.schemas import FeedbackFilter

Predicate = Callable[[FeedbackSubmission], bool]


def _matches_search(term: str) -> Predicate:
    needle = term.lower()
    return lambda s: needle in s.name.lower() or needle in s.contact.lower()


def build_predicates(config: FeedbackFilter) -> list[Predicate]:
    """Turn the active options of a filter configuration into predicates."""
    predicates: list[Predicate] = []

    if config.search_term:
        predicates.append(_matches_search(config.search_term))

    if config.overall_rating is not None:
        rating = config.overall_rating
        predicates.append(lambda s: s.overall_experience == rating)

    if config.can_contact is not None:
        can_contact = config.can_contact
        predicates.append(lambda s: s.can_contact_again is can_contact)

    # ISO dates are fixed width, so string order is date order
    if config.date_from:
        date_from = config.date_from
        predicates.append(lambda s: s.date_of_experience >= date_from)

    if config.date_to:
        date_to = config.date_to
        predicates.append(lambda s: s.date_of_experience <= date_to)

    return predicates


def filter_submissions(
    submissions: Sequence[FeedbackSubmission],
    config: FeedbackFilter | None = None,
) -> list[FeedbackSubmission]:
    """
    Return the submissions matching every active option, in input order.

    Args:
        submissions: Full collection as fetched from the store
        config: Filter configuration; None or all-unset keeps everything

    Returns:
        New list; the input is never modified
    """
    predicates = build_predicates(config) if config else []
    return [s for s in submissions if all(p(s) for p in predicates)]
