"""
Tests for the sprint board: adding cards, bucketing, updates, moves and removal.
"""

import pytest


@pytest.fixture
async def sprint(create_sprint):
    return await create_sprint(name="Sprint 1")


@pytest.fixture
def board_url(project, sprint):
    return f"/api/v1/projects/{project['id']}/sprints/{sprint['id']}"


@pytest.fixture
def add_card(client, auth_headers, board_url):
    async def _add(item, original_type=None, **fields):
        response = await client.post(
            f"{board_url}/items",
            json={"originalId": item["id"], "originalType": original_type or item["type"], **fields},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _add


async def _board(client, auth_headers, board_url):
    response = await client.get(f"{board_url}/board", headers=auth_headers)
    assert response.status_code == 200
    return response.json()


def _orders(cards):
    return [(card["id"], card["order"]) for card in cards]


class TestAddItem:

    @pytest.mark.asyncio
    async def test_orders_grow_by_gap(self, create_item, add_card):
        """Test that three adds to an empty todo column get 1000, 2000, 3000."""
        items = [await create_item(name, type="story") for name in ("A", "B", "C")]

        cards = [await add_card(item) for item in items]

        assert [card["order"] for card in cards] == [1000, 2000, 3000]
        assert all(card["status"] == "todo" for card in cards)
        assert [card["id"] for card in cards] == [item["id"] for item in items]
        assert cards[0]["originalType"] == "story"
        assert cards[0]["type"] == "story"

    @pytest.mark.asyncio
    async def test_card_fields(self, create_item, add_card, user):
        item = await create_item("Bug in login", type="bug")

        card = await add_card(item, type="techTask", sprintAssigneeId=user.id)

        assert card["originalId"] == item["id"]
        assert card["originalType"] == "bug"
        assert card["type"] == "techTask"
        assert card["sprintAssigneeId"] == user.id
        assert card["addedAt"] is not None

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, client, auth_headers, board_url, create_item, add_card):
        item = await create_item("A", type="story")
        await add_card(item)

        response = await client.post(
            f"{board_url}/items",
            json={"originalId": item["id"], "originalType": "story"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Item already exists in this sprint"}
        board = await _board(client, auth_headers, board_url)
        assert [card["id"] for card in board["todo"]] == [item["id"]]

    @pytest.mark.asyncio
    async def test_type_must_match_backlog_item(self, client, auth_headers, board_url, create_item):
        item = await create_item("A", type="story")

        response = await client.post(
            f"{board_url}/items",
            json={"originalId": item["id"], "originalType": "bug"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"message": f"Backlog item {item['id']} not found"}

    @pytest.mark.asyncio
    async def test_unknown_card_type_rejected(self, client, auth_headers, board_url, create_item):
        item = await create_item("A", type="story")

        response = await client.post(
            f"{board_url}/items",
            json={"originalId": item["id"], "originalType": "story", "type": "whatever"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        board = await _board(client, auth_headers, board_url)
        assert board["todo"] == []

    @pytest.mark.asyncio
    async def test_unknown_backlog_item(self, client, auth_headers, board_url):
        response = await client.post(
            f"{board_url}/items",
            json={"originalId": 999, "originalType": "story"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_sprint(self, client, auth_headers, project, create_item):
        item = await create_item("A", type="story")

        response = await client.post(
            f"/api/v1/projects/{project['id']}/sprints/999/items",
            json={"originalId": item["id"], "originalType": "story"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Sprint 999 not found"}

    @pytest.mark.asyncio
    async def test_next_order_only_looks_at_todo(self, client, auth_headers, board_url, create_item, add_card):
        first = await add_card(await create_item("A", type="story"))
        await client.patch(
            f"{board_url}/items/{first['id']}",
            json={"status": "done", "order": 9000},
            headers=auth_headers,
        )

        second = await add_card(await create_item("B", type="story"))

        assert second["order"] == 1000


class TestBoard:

    @pytest.mark.asyncio
    async def test_buckets_sorted_without_loss(self, client, auth_headers, board_url, create_item, add_card):
        items = [await create_item(f"Item {n}", type="story") for n in range(6)]
        cards = [await add_card(item) for item in items]
        layout = {
            cards[0]["id"]: ("in-progress", 500),
            cards[1]["id"]: ("review", 100),
            cards[2]["id"]: ("done", 300),
            cards[3]["id"]: ("in-progress", 200),
            cards[4]["id"]: ("todo", 7000),
        }
        for card_id, (status, order) in layout.items():
            response = await client.patch(
                f"{board_url}/items/{card_id}",
                json={"status": status, "order": order},
                headers=auth_headers,
            )
            assert response.status_code == 200

        board = await _board(client, auth_headers, board_url)

        assert set(board) == {"todo", "in-progress", "review", "done"}
        assert _orders(board["todo"]) == [(cards[5]["id"], 6000), (cards[4]["id"], 7000)]
        assert _orders(board["in-progress"]) == [(cards[3]["id"], 200), (cards[0]["id"], 500)]
        assert _orders(board["review"]) == [(cards[1]["id"], 100)]
        assert _orders(board["done"]) == [(cards[2]["id"], 300)]
        all_ids = [card["id"] for bucket in board.values() for card in bucket]
        assert sorted(all_ids) == sorted(card["id"] for card in cards)

    @pytest.mark.asyncio
    async def test_empty_board(self, client, auth_headers, board_url):
        board = await _board(client, auth_headers, board_url)
        assert board == {"todo": [], "in-progress": [], "review": [], "done": []}

    @pytest.mark.asyncio
    async def test_unknown_sprint(self, client, auth_headers, project):
        response = await client.get(f"/api/v1/projects/{project['id']}/sprints/999/board", headers=auth_headers)
        assert response.status_code == 404


class TestUpdateItem:

    @pytest.mark.asyncio
    async def test_status_change_leaves_siblings_alone(
        self, client, auth_headers, board_url, create_item, add_card
    ):
        cards = [await add_card(await create_item(name, type="story")) for name in ("A", "B", "C")]

        response = await client.patch(
            f"{board_url}/items/{cards[1]['id']}",
            json={"status": "in-progress"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"
        assert response.json()["order"] == 2000
        board = await _board(client, auth_headers, board_url)
        assert _orders(board["todo"]) == [(cards[0]["id"], 1000), (cards[2]["id"], 3000)]

    @pytest.mark.asyncio
    async def test_assignee_can_be_cleared(self, client, auth_headers, board_url, create_item, add_card, user):
        card = await add_card(await create_item("A", type="story"), sprintAssigneeId=user.id)

        response = await client.patch(
            f"{board_url}/items/{card['id']}",
            json={"sprintAssigneeId": None},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["sprintAssigneeId"] is None

    @pytest.mark.parametrize("body", [
        {"title": "renamed"},
        {"status": "blocked"},
        {"status": None},
        {},
    ])
    @pytest.mark.asyncio
    async def test_invalid_patch_rejected(self, client, auth_headers, board_url, create_item, add_card, body):
        card = await add_card(await create_item("A", type="story"))

        response = await client.patch(f"{board_url}/items/{card['id']}", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert "message" in response.json()

    @pytest.mark.asyncio
    async def test_unknown_item(self, client, auth_headers, board_url):
        response = await client.patch(
            f"{board_url}/items/999", json={"status": "done"}, headers=auth_headers
        )
        assert response.status_code == 404


class TestMoveItem:

    async def _move(self, client, auth_headers, board_url, card, status, position):
        response = await client.post(
            f"{board_url}/items/{card['id']}/move",
            json={"status": status, "position": position},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()

    @pytest.mark.asyncio
    async def test_move_to_top_and_between(self, client, auth_headers, board_url, create_item, add_card):
        a, b, c = [await add_card(await create_item(name, type="story")) for name in ("A", "B", "C")]

        moved = await self._move(client, auth_headers, board_url, c, "todo", 0)
        assert moved["order"] == 500

        moved = await self._move(client, auth_headers, board_url, a, "todo", 1)
        assert moved["order"] == 1250

        board = await _board(client, auth_headers, board_url)
        assert [card["id"] for card in board["todo"]] == [c["id"], a["id"], b["id"]]

    @pytest.mark.asyncio
    async def test_move_to_other_column(self, client, auth_headers, board_url, create_item, add_card):
        a, b = [await add_card(await create_item(name, type="story")) for name in ("A", "B")]

        first = await self._move(client, auth_headers, board_url, a, "review", 0)
        second = await self._move(client, auth_headers, board_url, b, "review", 10)

        assert (first["status"], first["order"]) == ("review", 1000)
        assert (second["status"], second["order"]) == ("review", 2000)

    @pytest.mark.asyncio
    async def test_renumbers_when_no_gap_left(self, client, auth_headers, board_url, create_item, add_card):
        a, b, c = [await add_card(await create_item(name, type="story")) for name in ("A", "B", "C")]
        for card, order in ((a, 1), (b, 2)):
            await client.patch(f"{board_url}/items/{card['id']}", json={"order": order}, headers=auth_headers)

        moved = await self._move(client, auth_headers, board_url, c, "todo", 1)

        assert moved["order"] == 1500
        board = await _board(client, auth_headers, board_url)
        assert _orders(board["todo"]) == [(a["id"], 1000), (c["id"], 1500), (b["id"], 2000)]

    @pytest.mark.asyncio
    async def test_negative_position_rejected(self, client, auth_headers, board_url, create_item, add_card):
        card = await add_card(await create_item("A", type="story"))

        response = await client.post(
            f"{board_url}/items/{card['id']}/move",
            json={"status": "todo", "position": -1},
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestRemoveItem:

    @pytest.mark.asyncio
    async def test_remove(self, client, auth_headers, board_url, create_item, add_card):
        card = await add_card(await create_item("A", type="story"))

        response = await client.delete(f"{board_url}/items/{card['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Item removed from sprint", "id": card["id"]}
        board = await _board(client, auth_headers, board_url)
        assert board["todo"] == []

    @pytest.mark.asyncio
    async def test_remove_unknown(self, client, auth_headers, board_url):
        response = await client.delete(f"{board_url}/items/999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Item in sprint 999 not found"}
