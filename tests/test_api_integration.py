def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_save_note_and_read_derived_tags(client):
    response = client.post(
        "/api/notes",
        json={"content": "Meeting notes #work/planning and #ideas", "tags": ["urgent"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["note"]["title"] == "Untitled"
    assert data["updated_at"] == data["note"]["updated_at"]

    notes = client.get("/api/notes").json()
    assert [n["id"] for n in notes] == [data["note"]["id"]]

    tags = client.get("/api/tags").json()
    assert sorted(t["name"] for t in tags) == ["ideas", "planning", "urgent", "work"]

    tree = client.get("/api/tags/tree").json()
    assert [n["name"] for n in tree] == ["ideas", "urgent", "work"]
    assert tree[2]["children"][0]["path"] == "work/planning"

    assert client.get("/api/tags/suggest", params={"q": "plan"}).json() == ["work/planning"]


def test_update_keeps_identity(client):
    created = client.post("/api/notes", json={"title": "First", "content": "#a"}).json()["note"]

    updated = client.post(
        "/api/notes", json={"id": created["id"], "title": "Second"}
    ).json()["note"]

    assert updated["id"] == created["id"]
    assert updated["content"] == "#a"
    assert updated["created_at"] == created["created_at"]


def test_put_stores_note_verbatim(client, note_store):
    note = {
        "id": "mirrored",
        "title": "From a device",
        "content": "",
        "tags": [],
        "updated_at": "2024-02-01T10:00:00Z",
        "created_at": "2024-01-01T10:00:00Z",
        "is_pinned": False,
        "is_published": False,
    }
    assert client.put("/api/notes", json=note).json() == {"success": True}
    assert note_store.rows["mirrored"].title == "From a device"


def test_delete_requires_id(client):
    response = client.delete("/api/notes")
    assert response.status_code == 400
    assert response.text == "Missing ID"


def test_delete_note(client, note_store):
    note_id = client.post("/api/notes", json={"content": "bye"}).json()["note"]["id"]
    assert client.delete("/api/notes", params={"id": note_id}).json() == {"success": True}
    assert note_store.rows == {}


def test_replace_tags(client, tag_store):
    payload = [
        {"id": "w", "name": "work", "parent_id": None, "created_at": "2024-01-01T00:00:00Z"},
        {"id": "p", "name": "plan", "parent_id": "w", "created_at": "2024-01-01T00:00:00Z"},
    ]
    assert client.post("/api/tags", json=payload).json() == {"success": True}
    assert [t.id for t in tag_store.tags] == ["w", "p"]


def test_public_note(client, note_store, note_factory):
    import asyncio

    asyncio.run(note_store.upsert(note_factory("draft", title="secret")))
    asyncio.run(note_store.upsert(note_factory("pub", title="hello", is_published=True)))

    missing = client.get("/api/public/notes")
    assert missing.status_code == 400
    assert missing.text == "Missing ID"

    hidden = client.get("/api/public/notes", params={"id": "draft"})
    assert hidden.status_code == 404
    assert hidden.text == "Note not found or not published"

    shown = client.get("/api/public/notes", params={"id": "pub"})
    assert shown.status_code == 200
    assert shown.json()["title"] == "hello"


def test_store_failure_is_reported(client, note_store):
    note_store.fail = True
    response = client.get("/api/notes")
    assert response.status_code == 500
    assert "unavailable" in response.text


def test_search_endpoint(client):
    client.post("/api/notes", json={"title": "Groceries", "content": "milk and eggs #home"})
    client.post("/api/notes", json={"title": "Standup", "content": "blockers #work"})

    hits = client.get("/api/search", params={"q": "milk"}).json()
    assert [h["title"] for h in hits] == ["Groceries"]
    assert "milk" in hits[0]["snippet"]

    by_tag = client.get("/api/search", params={"tag": "work"}).json()
    assert [h["title"] for h in by_tag] == ["Standup"]
