"""
Tests for sprint lifecycle endpoints.
"""

import pytest


class TestCreateSprint:

    @pytest.mark.asyncio
    async def test_first_sprint_active_then_planned(self, create_sprint):
        first = await create_sprint("2030-01-01", "2030-01-14", name="Sprint 1", goal="Ship login")
        second = await create_sprint("2030-01-15", "2030-01-28")

        assert first["status"] == "active"
        assert first["goal"] == "Ship login"
        assert second["status"] == "planned"
        assert second["name"] == "Sprint 2030-01-15"

    @pytest.mark.asyncio
    async def test_start_must_precede_end(self, client, auth_headers, project):
        response = await client.post(
            f"/api/v1/projects/{project['id']}/sprints",
            json={"startDate": "2030-01-14", "endDate": "2030-01-14"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "startDate must be before endDate"}

    @pytest.mark.asyncio
    async def test_overlap_rejected(self, client, auth_headers, project, create_sprint):
        await create_sprint("2030-01-01", "2030-01-14", name="Sprint 1")

        response = await client.post(
            f"/api/v1/projects/{project['id']}/sprints",
            json={"startDate": "2029-12-20", "endDate": "2030-02-01"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Overlapping sprint exists: Sprint 1"}

    @pytest.mark.asyncio
    async def test_missing_dates(self, client, auth_headers, project):
        response = await client.post(
            f"/api/v1/projects/{project['id']}/sprints", json={"name": "No dates"}, headers=auth_headers
        )
        assert response.status_code == 400


class TestListSprints:

    @pytest.mark.asyncio
    async def test_newest_end_date_first_and_status_filter(self, client, auth_headers, project, create_sprint):
        older = await create_sprint("2030-01-01", "2030-01-14")
        newer = await create_sprint("2030-02-01", "2030-02-14")

        listing = await client.get(f"/api/v1/projects/{project['id']}/sprints", headers=auth_headers)
        planned = await client.get(
            f"/api/v1/projects/{project['id']}/sprints", params={"status": "planned"}, headers=auth_headers
        )

        assert [s["id"] for s in listing.json()] == [newer["id"], older["id"]]
        assert [s["id"] for s in planned.json()] == [newer["id"]]

    @pytest.mark.asyncio
    async def test_get_sprint_scoped_to_project(self, client, auth_headers, make_headers, make_user, create_sprint):
        sprint = await create_sprint()
        stranger = await make_user("second-owner@worksense.dev")
        stranger_headers = make_headers(stranger)
        other = await client.post("/api/v1/projects", json={"name": "Other"}, headers=stranger_headers)

        response = await client.get(
            f"/api/v1/projects/{other.json()['id']}/sprints/{sprint['id']}", headers=stranger_headers
        )

        assert response.status_code == 404


class TestSprintStatus:

    async def _set_status(self, client, auth_headers, project, sprint, status):
        return await client.put(
            f"/api/v1/projects/{project['id']}/sprints/{sprint['id']}/status",
            json={"status": status},
            headers=auth_headers,
        )

    @pytest.mark.asyncio
    async def test_only_one_active_sprint(self, client, auth_headers, project, create_sprint):
        await create_sprint("2030-01-01", "2030-01-14", name="Sprint 1")
        planned = await create_sprint("2030-01-15", "2030-01-28")

        response = await self._set_status(client, auth_headers, project, planned, "active")

        assert response.status_code == 400
        assert response.json() == {"message": "Sprint 'Sprint 1' is already active in this project"}

    @pytest.mark.asyncio
    async def test_complete_records_metrics(self, client, auth_headers, project, create_sprint, create_item):
        sprint = await create_sprint()
        board_url = f"/api/v1/projects/{project['id']}/sprints/{sprint['id']}"
        for name, status in (("A", "done"), ("B", "done"), ("C", "review"), ("D", None)):
            item = await create_item(name, type="story")
            await client.post(
                f"{board_url}/items",
                json={"originalId": item["id"], "originalType": "story"},
                headers=auth_headers,
            )
            if status:
                await client.patch(f"{board_url}/items/{item['id']}", json={"status": status}, headers=auth_headers)

        response = await self._set_status(client, auth_headers, project, sprint, "completed")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["completedAt"] is not None
        assert body["completionMetrics"] == {
            "total_items": 4,
            "completed_items": 2,
            "items_by_status": {"todo": 1, "in-progress": 0, "review": 1, "done": 2},
        }

    @pytest.mark.asyncio
    async def test_completed_is_final(self, client, auth_headers, project, create_sprint):
        sprint = await create_sprint()
        await self._set_status(client, auth_headers, project, sprint, "completed")

        response = await self._set_status(client, auth_headers, project, sprint, "active")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid transition from completed to active"}

    @pytest.mark.asyncio
    async def test_activate_after_completing_previous(self, client, auth_headers, project, create_sprint):
        first = await create_sprint("2030-01-01", "2030-01-14")
        second = await create_sprint("2030-01-15", "2030-01-28")

        await self._set_status(client, auth_headers, project, first, "completed")
        response = await self._set_status(client, auth_headers, project, second, "active")

        assert response.status_code == 200
        assert response.json()["status"] == "active"

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, client, auth_headers, project, create_sprint):
        sprint = await create_sprint()
        response = await self._set_status(client, auth_headers, project, sprint, "cancelled")
        assert response.status_code == 400
