#!/usr/bin/env python3
"""
Seed Data Script for Worksense

Creates demo data for development:
- 3 Users
- 1 Project with all users as members
- 3 Epics, each with a few stories
- 1 Active Sprint with cards spread over the board

Usage:
    python scripts/seed_data.py              # Add seed data
    python scripts/seed_data.py --clear      # Clear all data first
"""
import asyncio
import sys
import os
from datetime import date, timedelta

from dotenv import load_dotenv
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from worksense.config import get_settings
from worksense.core.auth import create_access_token
from worksense.database import Database
from worksense.models import (
    BacklogItem,
    PointAward,
    Project,
    ProjectMember,
    ProjectScore,
    Sprint,
    SprintItem,
    User,
    UserGamification,
    scope_key_for,
)


# ==================== DATA DEFINITIONS ====================

USERS_DATA = [
    {"email": "ana.po@worksense.dev", "full_name": "Ana Torres", "role": "owner"},
    {"email": "luis.dev@worksense.dev", "full_name": "Luis Herrera", "role": "member"},
    {"email": "sofia.dev@worksense.dev", "full_name": "Sofia Ramirez", "role": "member"},
]

PROJECT_DATA = {
    "name": "Worksense Mobile",
    "description": "Mobile companion app for tracking sprint work and team wellbeing",
}

EPICS_DATA = [
    {
        "name": "User Onboarding",
        "description": "Sign-up, profile setup and the first-run tour",
        "priority": "high",
        "stories": [
            {"name": "Sign up with email", "priority": "high", "size": "M"},
            {"name": "Complete profile after sign-up", "priority": "medium", "size": "S"},
            {"name": "First-run product tour", "priority": "low", "size": "S"},
        ],
    },
    {
        "name": "Sprint Board",
        "description": "Drag-and-drop board for the active sprint",
        "priority": "highest",
        "stories": [
            {"name": "View cards by column", "priority": "high", "size": "M"},
            {"name": "Move card between columns", "priority": "high", "size": "L"},
        ],
    },
    {
        "name": "Notifications",
        "description": "Push notifications for assignments and mentions",
        "priority": "medium",
        "stories": [
            {"name": "Notify on assignment", "priority": "medium", "size": "S"},
        ],
    },
]

# Board column for each seeded story card, in insertion order
BOARD_COLUMNS = ["done", "in-progress", "todo", "review", "todo"]


# ==================== SEED FUNCTIONS ====================

async def clear_all_data(session: AsyncSession):
    """Clear all data from the database"""
    print("🗑️  Clearing existing data...")

    # Delete in correct order (respecting foreign keys)
    await session.execute(delete(SprintItem))
    await session.execute(delete(BacklogItem).where(BacklogItem.parent_id.is_not(None)))
    await session.execute(delete(BacklogItem))
    await session.execute(delete(Sprint))
    await session.execute(delete(PointAward))
    await session.execute(delete(ProjectScore))
    await session.execute(delete(UserGamification))
    await session.execute(delete(ProjectMember))
    await session.execute(delete(Project))
    await session.execute(delete(User))

    await session.commit()
    print("✅ All data cleared")


async def create_users(session: AsyncSession):
    print("\n👥 Creating users...")

    users_map = {}
    for user_data in USERS_DATA:
        user = User(email=user_data["email"], full_name=user_data["full_name"], is_active=True)
        session.add(user)
        users_map[user_data["email"]] = user
        print(f"  ✓ Created: {user.full_name} ({user.email})")

    await session.commit()
    return users_map


async def create_project(session: AsyncSession, users_map):
    print("\n📁 Creating project...")

    owner = users_map[USERS_DATA[0]["email"]]
    project = Project(owner_id=owner.id, **PROJECT_DATA)
    session.add(project)
    await session.flush()

    for user_data in USERS_DATA:
        session.add(ProjectMember(
            project_id=project.id,
            user_id=users_map[user_data["email"]].id,
            role=user_data["role"]
        ))

    await session.commit()
    print(f"  ✓ Created: {project.name} with {len(USERS_DATA)} members")
    return project


async def create_backlog(session: AsyncSession, project, author):
    print("\n📋 Creating epics and stories...")

    stories = []
    for epic_data in EPICS_DATA:
        epic = BacklogItem(
            project_id=project.id,
            scope_key=scope_key_for(None),
            type="epic",
            name=epic_data["name"],
            description=epic_data["description"],
            priority=epic_data["priority"],
            status="new",
            author_id=author.id
        )
        session.add(epic)
        await session.flush()

        for story_data in epic_data["stories"]:
            story = BacklogItem(
                project_id=project.id,
                parent_id=epic.id,
                scope_key=scope_key_for(epic.id),
                type="story",
                status="toDo",
                author_id=author.id,
                **story_data
            )
            session.add(story)
            stories.append(story)

        print(f"  ✓ {epic.name}: {len(epic_data['stories'])} stories")

    await session.commit()
    return stories


async def create_sprint(session: AsyncSession, project, stories, assignees, order_gap: int):
    print("\n🏃 Creating active sprint...")

    today = date.today()
    sprint = Sprint(
        project_id=project.id,
        name="Sprint 1",
        goal="Ship onboarding and a read-only sprint board",
        start_date=today - timedelta(days=3),
        end_date=today + timedelta(days=11),
        status="active"
    )
    session.add(sprint)
    await session.flush()

    column_orders = {}
    for index, (story, column) in enumerate(zip(stories, BOARD_COLUMNS)):
        column_orders[column] = column_orders.get(column, 0) + order_gap
        session.add(SprintItem(
            sprint_id=sprint.id,
            original_id=story.id,
            original_type="story",
            type="story",
            status=column,
            order=column_orders[column],
            sprint_assignee_id=assignees[index % len(assignees)].id
        ))

    await session.commit()
    print(f"  ✓ Created: {sprint.name} with {min(len(stories), len(BOARD_COLUMNS))} cards")
    return sprint


# ==================== MAIN ====================

async def seed_database(clear_first: bool = False):
    """Main seed function"""
    print("=" * 60)
    print("🌱 Worksense - Database Seeding")
    print("=" * 60)

    settings = get_settings()
    database = Database(settings)
    await database.create_all()

    try:
        async with database.sessionmaker() as session:
            if clear_first:
                await clear_all_data(session)

            users_map = await create_users(session)
            project = await create_project(session, users_map)
            owner = users_map[USERS_DATA[0]["email"]]
            stories = await create_backlog(session, project, owner)
            await create_sprint(session, project, stories, list(users_map.values()), settings.sprint_order_gap)
    finally:
        await database.dispose()

    print("\n" + "=" * 60)
    print("✅ Database seeding complete!")
    print("=" * 60)
    print("\n📊 Summary:")
    print(f"  Users: {len(USERS_DATA)}")
    print(f"  Project: {PROJECT_DATA['name']} (id {project.id})")
    print(f"  Epics: {len(EPICS_DATA)}")
    print(f"  Stories: {len(stories)}")
    print("  Sprints: 1 (active)")
    print("\n🔑 Bearer token for the project owner:")
    print(f"  {create_access_token({'sub': owner.id}, settings)}")


if __name__ == "__main__":
    import argparse

    load_dotenv()

    parser = argparse.ArgumentParser(description="Seed Worksense database")
    parser.add_argument("--clear", action="store_true", help="Clear all data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear_first=args.clear))
