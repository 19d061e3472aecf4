"""
Tests for points, badges, the project leaderboard and gamification stats.
"""

import pytest

from worksense.services.gamification_service import calculate_task_points, level_for


@pytest.fixture
async def sprint(create_sprint):
    return await create_sprint(name="Sprint 1")


@pytest.fixture
def board_url(project, sprint):
    return f"/api/v1/projects/{project['id']}/sprints/{sprint['id']}"


@pytest.fixture
def add_card(client, auth_headers, board_url):
    async def _add(item, **fields):
        response = await client.post(
            f"{board_url}/items",
            json={"originalId": item["id"], "originalType": item["type"], **fields},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _add


@pytest.fixture
def move_card(client, auth_headers, board_url):
    async def _move(card, status, position=0, headers=None):
        response = await client.post(
            f"{board_url}/items/{card['id']}/move",
            json={"status": status, "position": position},
            headers=headers or auth_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()
    return _move


async def _leaderboard(client, auth_headers, project):
    response = await client.get(f"/api/v1/projects/{project['id']}/leaderboard", headers=auth_headers)
    assert response.status_code == 200
    return response.json()


class TestTaskPoints:

    @pytest.mark.parametrize("item_type, size, expected", [
        ("epic", None, 50),
        ("story", "M", 25),
        ("story", "L", 32),
        ("bug", "XS", 7),
        ("techTask", "XL", 36),
        ("knowledge", "S", 8),
        ("unknown", None, 15),
    ])
    def test_points_by_type_and_size(self, item_type, size, expected):
        assert calculate_task_points(item_type, size) == expected

    @pytest.mark.parametrize("total, level", [(0, 1), (99, 1), (100, 2), (250, 3)])
    def test_level(self, total, level):
        assert level_for(total) == level


class TestAwards:

    @pytest.mark.asyncio
    async def test_done_card_credits_sprint_assignee(
        self, client, auth_headers, project, user, create_item, add_card, move_card
    ):
        epic = await create_item("Login")
        card = await add_card(epic, sprintAssigneeId=user.id)

        await move_card(card, "done")

        [entry] = await _leaderboard(client, auth_headers, project)
        assert entry["rank"] == 1
        assert entry["userId"] == user.id
        assert entry["name"] == "Project Owner"
        assert entry["points"] == 50
        assert [badge["name"] for badge in entry["badges"]] == ["First Steps", "Getting Started"]
        assert entry["badges"][0]["icon"] == "Rocket"
        assert entry["badges"][0]["earnedAt"] is not None

    @pytest.mark.asyncio
    async def test_unassigned_card_credits_caller(
        self, client, auth_headers, project, user, board_url, create_item, add_card
    ):
        story = await create_item("Sign in", type="story", size="L")
        card = await add_card(story)

        response = await client.patch(
            f"{board_url}/items/{card['id']}", json={"status": "done"}, headers=auth_headers
        )

        assert response.status_code == 200
        [entry] = await _leaderboard(client, auth_headers, project)
        assert (entry["userId"], entry["points"]) == (user.id, 32)

    @pytest.mark.asyncio
    async def test_item_pays_out_once(self, client, auth_headers, project, create_item, add_card, move_card):
        epic = await create_item("Login")
        card = await add_card(epic)

        await move_card(card, "done")
        await move_card(card, "todo")
        await move_card(card, "done")

        [entry] = await _leaderboard(client, auth_headers, project)
        assert entry["points"] == 50

    @pytest.mark.asyncio
    async def test_moves_outside_done_award_nothing(
        self, client, auth_headers, project, create_item, add_card, move_card
    ):
        card = await add_card(await create_item("Login"))

        await move_card(card, "in-progress")
        await move_card(card, "review")

        assert await _leaderboard(client, auth_headers, project) == []

    @pytest.mark.asyncio
    async def test_backlog_done_awards_and_board_does_not_repeat(
        self, client, auth_headers, project, user, create_item, add_card, move_card
    ):
        bug = await create_item("Crash on start", type="bug")
        card = await add_card(bug)

        response = await client.patch(
            f"/api/v1/projects/{project['id']}/backlog/items/{bug['id']}",
            json={"status": "done"},
            headers=auth_headers,
        )
        await move_card(card, "done")

        assert response.status_code == 200
        [entry] = await _leaderboard(client, auth_headers, project)
        assert (entry["userId"], entry["points"]) == (user.id, 15)

    @pytest.mark.asyncio
    async def test_backlog_done_credits_assignee(
        self, client, auth_headers, project, other_user, create_item
    ):
        await client.post(
            f"/api/v1/projects/{project['id']}/members", json={"userId": other_user.id}, headers=auth_headers
        )
        story = await create_item("Sign in", type="story", assigneeId=other_user.id)

        await client.patch(
            f"/api/v1/projects/{project['id']}/backlog/items/{story['id']}",
            json={"status": "done"},
            headers=auth_headers,
        )

        [entry] = await _leaderboard(client, auth_headers, project)
        assert (entry["userId"], entry["points"]) == (other_user.id, 25)


class TestLeaderboard:

    @pytest.mark.asyncio
    async def test_ranked_by_points(
        self, client, auth_headers, project, user, other_user, create_item, add_card, move_card
    ):
        await client.post(
            f"/api/v1/projects/{project['id']}/members", json={"userId": other_user.id}, headers=auth_headers
        )
        story = await add_card(await create_item("Sign in", type="story"), sprintAssigneeId=other_user.id)
        epic = await add_card(await create_item("Login"), sprintAssigneeId=user.id)

        await move_card(story, "done")
        await move_card(epic, "done")

        board = await _leaderboard(client, auth_headers, project)
        assert [(e["rank"], e["userId"], e["points"]) for e in board] == [
            (1, user.id, 50),
            (2, other_user.id, 25),
        ]

    @pytest.mark.asyncio
    async def test_members_only(self, client, other_headers, project):
        response = await client.get(f"/api/v1/projects/{project['id']}/leaderboard", headers=other_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_project_delete_keeps_global_points(
        self, client, auth_headers, project, user, create_item, add_card, move_card
    ):
        await move_card(await add_card(await create_item("Login")), "done")

        await client.delete(f"/api/v1/projects/{project['id']}", headers=auth_headers)
        summary = await client.get(f"/api/v1/gamification/users/{user.id}", headers=auth_headers)

        assert summary.json() == {"userId": user.id, "totalPoints": 50, "level": 1}


class TestStats:

    @pytest.mark.asyncio
    async def test_project_stats(self, client, auth_headers, project, user, create_item):
        epic = await create_item("Login")
        await create_item("Sign in", type="story")
        await create_item("Crash on start", type="bug", status="toDo")
        await client.patch(
            f"/api/v1/projects/{project['id']}/backlog/items/{epic['id']}",
            json={"status": "done"},
            headers=auth_headers,
        )

        response = await client.get(
            f"/api/v1/projects/{project['id']}/gamification/stats", headers=auth_headers
        )

        assert response.status_code == 200
        stats = response.json()
        assert stats["totalUsers"] == 1
        assert stats["totalPoints"] == 50
        assert stats["averagePoints"] == 50
        assert stats["topPerformer"]["userId"] == user.id
        assert stats["totalBacklogItems"] == 3
        assert stats["completedTasks"] == 1
        assert stats["inProgressTasks"] == 0
        assert stats["todoTasks"] == 2
        assert stats["completionRate"] == 33
        assert (stats["epics"], stats["stories"], stats["bugs"], stats["techTasks"]) == (1, 1, 1, 0)

    @pytest.mark.asyncio
    async def test_empty_project(self, client, auth_headers, project):
        response = await client.get(
            f"/api/v1/projects/{project['id']}/gamification/stats", headers=auth_headers
        )

        assert response.json()["topPerformer"] is None
        assert response.json()["completionRate"] == 0
        assert response.json()["averagePoints"] == 0


class TestUserSummary:

    @pytest.mark.asyncio
    async def test_user_without_points(self, client, auth_headers, other_user):
        response = await client.get(f"/api/v1/gamification/users/{other_user.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"userId": other_user.id, "totalPoints": 0, "level": 1}

    @pytest.mark.asyncio
    async def test_level_grows_with_points(
        self, client, auth_headers, user, create_item, add_card, move_card
    ):
        for name in ("Login", "Signup", "Profile"):
            await move_card(await add_card(await create_item(name)), "done")

        response = await client.get(f"/api/v1/gamification/users/{user.id}", headers=auth_headers)

        assert response.json() == {"userId": user.id, "totalPoints": 150, "level": 2}

    @pytest.mark.asyncio
    async def test_requires_token(self, client, user):
        response = await client.get(f"/api/v1/gamification/users/{user.id}")

        assert response.status_code in (401, 403)
