from typing import Iterable, List, Set

from ..schemas.ai import AiSuggestion


def filter_new_suggestions(
    suggestions: Iterable[AiSuggestion],
    existing_titles: Iterable[str]
) -> List[AiSuggestion]:
    """Drop suggestions whose name exactly matches an existing title or an earlier suggestion."""
    seen: Set[str] = set(existing_titles)
    unique: List[AiSuggestion] = []

    for suggestion in suggestions:
        if suggestion.name in seen:
            continue
        seen.add(suggestion.name)
        unique.append(suggestion)

    return unique
