"""Score templates, placements and league points for a single session.

Placements use dense ranking: equal raw scores share a placement and the next
lower score takes the next integer (100, 100, 80 -> 1, 1, 2).
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from . import errors

PointsPolicy = Callable[[int, int], int]


@dataclass
class PlayerResult:
    user_id: int
    raw_score: int
    score_details: dict[str, int] | None = None
    placement: int = 0
    points_awarded: int = 0


def _field_key(field: Mapping[str, object]) -> str:
    key = field.get("key")
    if not isinstance(key, str) or not key.strip():
        raise errors.InvalidTemplateError("Every template field needs a non-empty key.")
    return key


def validate_template_fields(fields: Sequence[Mapping[str, object]]) -> None:
    if not fields:
        raise errors.InvalidTemplateError("A score template needs at least one field.")

    seen: set[str] = set()
    for index, field in enumerate(fields):
        key = _field_key(field)
        label = field.get("label")
        if not isinstance(label, str) or not label.strip():
            raise errors.InvalidTemplateError(f"Field at index {index} is missing a label.")
        if key in seen:
            raise errors.InvalidTemplateError(f"Duplicate field key '{key}'.")
        seen.add(key)


def compute_raw_score(fields: Sequence[Mapping[str, object]], values: Mapping[str, int]) -> int:
    """Sum each template field's value times its multiplier.

    Fields missing from ``values`` count as zero. Keys in ``values`` that the
    template does not define raise ``UnknownFieldError``.
    """
    known = {_field_key(field) for field in fields}
    unknown = [key for key in values if key not in known]
    if unknown:
        raise errors.UnknownFieldError(unknown)

    total = 0
    for field in fields:
        multiplier = field.get("multiplier")
        if multiplier is None:
            multiplier = 1
        total += int(values.get(_field_key(field), 0)) * int(multiplier)
    return total


def linear_points(placement: int, player_count: int) -> int:
    """With 4 players: 1st=4, 2nd=3, 3rd=2, 4th=1."""
    if placement < 1 or placement > player_count:
        raise ValueError(f"Invalid placement {placement} for {player_count} players.")
    return max(player_count - placement + 1, 0)


def assign_placements(results: Iterable[PlayerResult]) -> list[PlayerResult]:
    # sorted() is stable, so tied players keep their submission order.
    ranked = sorted(results, key=lambda result: -result.raw_score)

    distinct_higher = 0
    previous_score: int | None = None
    for result in ranked:
        if previous_score is not None and result.raw_score < previous_score:
            distinct_higher += 1
        result.placement = distinct_higher + 1
        previous_score = result.raw_score

    return ranked


def assign_league_points(results: list[PlayerResult], points_policy: PointsPolicy = linear_points) -> list[PlayerResult]:
    player_count = len(results)
    for result in results:
        result.points_awarded = points_policy(result.placement, player_count)
    return results


def process_results(results: list[PlayerResult], points_policy: PointsPolicy = linear_points) -> list[PlayerResult]:
    if not results:
        raise errors.EmptySessionError()

    seen: set[int] = set()
    for result in results:
        if result.user_id in seen:
            raise errors.DuplicatePlayerError(result.user_id)
        seen.add(result.user_id)

    return assign_league_points(assign_placements(results), points_policy)
