"""Prompt templates sent to the backlog generator."""
from typing import Iterable, Optional

EPICS_PROMPT = """You are helping a product team plan the backlog of a software project.

Project name: {project_name}
Project description: {project_description}
{exclusions}
Propose between 3 and 6 epics that together cover the main capabilities of this project.
Each epic needs a short, specific name, a one or two sentence description and a
priority chosen from: lowest, low, medium, high, highest.

Respond ONLY with a JSON object in exactly this shape, with no commentary:
{{
  "epics": [
    {{"name": "...", "description": "...", "priority": "medium"}}
  ]
}}"""

STORIES_PROMPT = """You are helping a product team break an epic into user stories.

Project name: {project_name}
Project description: {project_description}
Epic name: {epic_name}
Epic description: {epic_description}
{exclusions}
Propose between 3 and 8 user stories for this epic. Write each name in the form
"As a <role>, I want <goal> so that <benefit>", add a short description with the
key acceptance points, and choose a priority from: lowest, low, medium, high, highest.

Respond ONLY with a JSON object in exactly this shape, with no commentary:
{{
  "stories": [
    {{"name": "...", "description": "...", "priority": "medium"}}
  ]
}}"""


def _exclusion_line(kind: str, existing_titles: Iterable[str]) -> str:
    titles = sorted(t for t in existing_titles if t)
    if not titles:
        return ""
    return f"Do not repeat these existing {kind}: {', '.join(titles)}.\n"


def render_epics_prompt(
    project_name: str,
    project_description: Optional[str],
    existing_titles: Iterable[str] = ()
) -> str:
    return EPICS_PROMPT.format(
        project_name=project_name,
        project_description=project_description or "",
        exclusions=_exclusion_line("epics", existing_titles),
    )


def render_stories_prompt(
    project_name: str,
    project_description: Optional[str],
    epic_name: str,
    epic_description: Optional[str],
    existing_titles: Iterable[str] = ()
) -> str:
    return STORIES_PROMPT.format(
        project_name=project_name,
        project_description=project_description or "",
        epic_name=epic_name,
        epic_description=epic_description or "",
        exclusions=_exclusion_line("stories", existing_titles),
    )
