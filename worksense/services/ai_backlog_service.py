"""
AI-assisted backlog: ask the generator for epic and story suggestions,
hide the ones already in the backlog, and persist the ones a user confirms.
"""
from typing import Any, Dict, List, Optional, Sequence, Set

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRequestError
from ..models.backlog import TOP_LEVEL_SCOPE, scope_key_for
from ..schemas.ai import AiSuggestion, ConfirmedEpic, ConfirmedStory, ConfirmResponse
from ..schemas.common import BacklogItemType, BacklogStatus
from ..utils.logging import get_logger
from .backlog_service import BacklogService
from .dedup import filter_new_suggestions
from .generator import BacklogGenerator
from .prompts import render_epics_prompt, render_stories_prompt
from .suggestion_parser import parse_epics, parse_stories

logger = get_logger(__name__)


class AIBacklogService:
    """Generate and confirm AI backlog suggestions for a project"""

    def __init__(self, db: AsyncSession, generator: BacklogGenerator):
        self.db = db
        self.generator = generator
        self.backlog = BacklogService(db)

    async def generate_epics(self, project_id: int) -> List[AiSuggestion]:
        """
        Suggest new epics for a project. Nothing is written.

        Returns:
            Suggestions whose names are not already used by a top-level item
        """
        project = await self.backlog.get_project(project_id)
        known = await self.backlog.existing_titles(project_id, TOP_LEVEL_SCOPE)

        prompt = render_epics_prompt(project.name, project.description, known)
        raw = await self.generator.generate(prompt, {
            "kind": "epics",
            "projectName": project.name,
            "projectDescription": project.description or "",
            "existingTitles": sorted(known)
        })
        suggestions = parse_epics(raw)

        # Titles may have changed while the generator was running
        existing = await self.backlog.existing_titles(project_id, TOP_LEVEL_SCOPE)
        unique = filter_new_suggestions(suggestions, existing)

        logger.info(
            "Generated %d epic suggestions for project %d (%d already in backlog)",
            len(unique), project_id, len(suggestions) - len(unique)
        )
        return unique

    async def generate_stories(self, project_id: int, epic_id: Optional[int]) -> List[AiSuggestion]:
        """Suggest new stories for one epic. Nothing is written."""
        if epic_id is None:
            raise InvalidRequestError("Project ID and epic ID required")

        project = await self.backlog.get_project(project_id)
        epic = await self.backlog.get_epic(project_id, epic_id)
        scope = scope_key_for(epic.id)
        known = await self.backlog.existing_titles(project_id, scope)

        prompt = render_stories_prompt(
            project.name, project.description, epic.name, epic.description, known
        )
        raw = await self.generator.generate(prompt, {
            "kind": "stories",
            "projectName": project.name,
            "projectDescription": project.description or "",
            "epicName": epic.name,
            "epicDescription": epic.description or "",
            "existingTitles": sorted(known)
        })
        suggestions = parse_stories(raw)

        existing = await self.backlog.existing_titles(project_id, scope)
        unique = filter_new_suggestions(suggestions, existing)

        logger.info(
            "Generated %d story suggestions for epic %d (%d already present)",
            len(unique), epic_id, len(suggestions) - len(unique)
        )
        return unique

    async def confirm_epics(
        self,
        project_id: int,
        epics: Sequence[ConfirmedEpic],
        author_id: Optional[int]
    ) -> ConfirmResponse:
        if not epics:
            raise InvalidRequestError("No epics provided")

        await self.backlog.get_project(project_id)
        existing = await self.backlog.existing_titles(project_id, TOP_LEVEL_SCOPE)

        rows: List[Dict[str, Any]] = []
        for name, epic in self._accepted(epics, existing):
            await self.backlog.validate_sprint_reference(project_id, epic.sprint)
            rows.append(self._row(
                project_id,
                name=name,
                entry=epic,
                item_type=BacklogItemType.EPIC,
                author_id=author_id,
                status=epic.status or BacklogStatus.NEW,
                assignee_id=epic.assignee_id,
                cover_image=epic.cover_image,
                sprint_id=epic.sprint
            ))

        created = await self.backlog.insert_if_absent(rows)
        skipped = len(epics) - created

        logger.info("Confirmed epics for project %d: %d created, %d skipped", project_id, created, skipped)
        return ConfirmResponse(message="Epics saved", created=created, skipped=skipped)

    async def confirm_stories(
        self,
        project_id: int,
        epic_id: Optional[int],
        stories: Sequence[ConfirmedStory],
        author_id: Optional[int]
    ) -> ConfirmResponse:
        if epic_id is None:
            raise InvalidRequestError("Project ID and epic ID required")
        if not stories:
            raise InvalidRequestError("No stories provided")

        await self.backlog.get_project(project_id)
        epic = await self.backlog.get_epic(project_id, epic_id)
        existing = await self.backlog.existing_titles(project_id, scope_key_for(epic.id))

        rows = [
            self._row(
                project_id,
                name=name,
                entry=story,
                item_type=BacklogItemType.STORY,
                author_id=author_id,
                status=BacklogStatus.NEW,
                parent_id=epic.id
            )
            for name, story in self._accepted(stories, existing)
        ]

        created = await self.backlog.insert_if_absent(rows)
        skipped = len(stories) - created

        logger.info("Confirmed stories for epic %d: %d created, %d skipped", epic_id, created, skipped)
        return ConfirmResponse(message="Stories saved", created=created, skipped=skipped)

    def _accepted(self, entries, existing: Set[str]):
        """Yield (trimmed name, entry) for entries that are non-empty and new."""
        seen = set(existing)
        for entry in entries:
            name = (entry.name or "").strip()
            if not name or name in seen:
                logger.debug("Skipping suggestion %r: empty or duplicate", name)
                continue
            seen.add(name)
            yield name, entry

    def _row(
        self,
        project_id: int,
        name: str,
        entry,
        item_type: BacklogItemType,
        author_id: Optional[int],
        status: BacklogStatus,
        parent_id: Optional[int] = None,
        assignee_id: Optional[int] = None,
        cover_image: Optional[str] = None,
        sprint_id: Optional[int] = None
    ) -> Dict[str, Any]:
        return {
            "project_id": project_id,
            "parent_id": parent_id,
            "scope_key": scope_key_for(parent_id),
            "type": item_type.value,
            "name": name,
            "description": entry.description,
            "priority": entry.priority.value,
            "status": status.value,
            "size": entry.size.value if entry.size else None,
            "acceptance_criteria": entry.acceptance_criteria,
            "assignee_id": assignee_id,
            "cover_image": cover_image,
            "sprint_id": sprint_id,
            "author_id": author_id,
        }
