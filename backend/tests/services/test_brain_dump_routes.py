"""Brain dump API tests — HTTP surface over the store, via httpx ASGITransport.

Tests cover:
    - Document CRUD, selection and listing/grouping
    - Node/edge commands, layouts and the visible graph
    - Topic extract/dissolve and instance creation
    - Domain errors mapped to 404 / 409 / 503 with structured bodies
"""

from tests.builders import tasks_graph


async def _create_tasks_doc(client):
    doc = tasks_graph()
    body = doc.model_dump(mode="json", by_alias=True, include={"title", "nodes", "edges"})
    res = await client.post("/api/v1/brain-dumps", json=body)
    assert res.status_code == 201
    return res.json()["id"]


async def test_health(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_create_from_raw_text(client):
    res = await client.post(
        "/api/v1/brain-dumps", json={"title": "Monday", "rawText": "todo: taxes\nwhy?"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["id"].startswith("braindump-")
    assert {n["type"] for n in body["nodes"]} == {"root", "category", "thought"}


async def test_get_unknown_brain_dump_is_404(client):
    res = await client.get("/api/v1/brain-dumps/nope")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_list_groups_by_type(client):
    await _create_tasks_doc(client)
    res = await client.get("/api/v1/brain-dumps", params={"groupBy": "type"})
    body = res.json()
    assert len(body["entries"]) == 1
    assert body["groups"][0]["key"] == "general"
    assert body["currentEntryId"] == body["entries"][0]["id"]


async def test_patch_and_select(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.patch(f"/api/v1/brain-dumps/{doc_id}", json={"title": "Renamed"})
    assert res.json()["title"] == "Renamed"
    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/select")
    assert res.status_code == 200


async def test_collapse_then_visible_graph(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/nodes/cat-tasks/toggle-collapse")
    assert res.status_code == 200

    graph = (await client.get(f"/api/v1/brain-dumps/{doc_id}/graph")).json()
    assert {n["id"] for n in graph["visibleNodes"]} == {"root", "cat-tasks"}
    assert [(e["source"], e["target"]) for e in graph["visibleEdges"]] == [("root", "cat-tasks")]
    assert graph["hiddenNodeIds"] == ["a", "b"]


async def test_add_child_node_adds_edge_and_position(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.post(
        f"/api/v1/brain-dumps/{doc_id}/nodes",
        json={"id": "c", "data": {"label": "C", "category": "tasks"}, "parentId": "cat-tasks"},
    )
    assert res.status_code == 201
    body = res.json()
    new_node = next(n for n in body["nodes"] if n["id"] == "c")
    assert new_node["position"]["x"] == 500
    assert any(e["source"] == "cat-tasks" and e["target"] == "c" for e in body["edges"])


async def test_patch_node_uses_camel_case_keys(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.patch(
        f"/api/v1/brain-dumps/{doc_id}/nodes/a",
        json={"data": {"label": "A!", "dueDate": "2026-12-01"}},
    )
    node_a = next(n for n in res.json()["nodes"] if n["id"] == "a")
    assert node_a["data"]["label"] == "A!"
    assert node_a["data"]["dueDate"] == "2026-12-01"
    assert node_a["data"]["category"] == "tasks"


async def test_update_missing_node_is_404(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.patch(
        f"/api/v1/brain-dumps/{doc_id}/nodes/missing", json={"data": {"label": "x"}},
    )
    assert res.status_code == 404


async def test_delete_node_drops_edges(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.delete(f"/api/v1/brain-dumps/{doc_id}/nodes/cat-tasks")
    assert res.json()["edges"] == []


async def test_edges_add_and_delete(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.post(
        f"/api/v1/brain-dumps/{doc_id}/edges", json={"source": "a", "target": "b"},
    )
    assert res.status_code == 201
    assert any(e["id"] == "edge-a-b" for e in res.json()["edges"])
    res = await client.delete(f"/api/v1/brain-dumps/{doc_id}/edges/edge-a-b")
    assert all(e["id"] != "edge-a-b" for e in res.json()["edges"])


async def test_horizontal_layout_route(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/layout")
    positions = {n["id"]: n["position"] for n in res.json()["nodes"]}
    assert positions["root"] == {"x": 0.0, "y": 50.0}


async def test_topic_extract_and_dissolve_routes(client, repository):
    doc_id = await _create_tasks_doc(client)
    res = await client.post(
        f"/api/v1/brain-dumps/{doc_id}/nodes/cat-tasks/topic",
        json={"initialThoughtsText": "focus"},
    )
    assert res.status_code == 201
    topic = res.json()["topic"]
    assert topic["type"] == "topic-focused"
    assert topic["topicFocus"] == "tasks"
    assert topic["id"] in repository.documents

    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/nodes/cat-tasks/topic", json={})
    assert res.status_code == 409

    res = await client.delete(f"/api/v1/brain-dumps/{doc_id}/nodes/cat-tasks/topic")
    assert res.status_code == 200
    assert {n["id"] for n in res.json()["nodes"]} == {"root", "cat-tasks", "a", "b"}


async def test_topic_storage_failure_is_503(client, repository):
    doc_id = await _create_tasks_doc(client)
    repository.fail_on.add("create_document")
    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/nodes/a/topic", json={})
    assert res.status_code == 503
    assert res.json()["error"]["code"] == "STORAGE_ERROR"


async def test_synonym_matches_and_instance(client):
    doc_id = await _create_tasks_doc(client)
    await client.post(
        f"/api/v1/brain-dumps/{doc_id}/nodes/a/synonyms", json={"synonym": "Alpha"},
    )
    res = await client.post("/api/v1/synonyms/matches", json={"input": "alpha"})
    matches = res.json()
    assert [(m["nodeId"], m["matchType"]) for m in matches] == [("a", "exact")]

    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/nodes/a/instances", json={})
    assert res.status_code == 201
    body = res.json()
    instance_id = body["instance"]["id"]
    assert body["instance"]["data"]["prototypeId"] == "a"
    prototype = next(n for n in body["target"]["nodes"] if n["id"] == "a")
    assert prototype["data"]["instances"] == [instance_id]


async def test_manual_save_and_status(client, repository):
    doc_id = await _create_tasks_doc(client)
    await client.patch(f"/api/v1/brain-dumps/{doc_id}/nodes/a", json={"data": {"label": "x"}})

    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/save")
    assert res.json()["status"] == "saved"
    assert repository.save_calls[-1] == doc_id

    res = await client.get(f"/api/v1/brain-dumps/{doc_id}/save-status")
    assert res.json()["pendingChanges"] == 0


async def test_manual_save_failure_is_503(client, repository):
    doc_id = await _create_tasks_doc(client)
    repository.fail_on.add("save_document")
    res = await client.post(f"/api/v1/brain-dumps/{doc_id}/save")
    assert res.status_code == 503


async def test_delete_brain_dump(client):
    doc_id = await _create_tasks_doc(client)
    res = await client.delete(f"/api/v1/brain-dumps/{doc_id}")
    assert res.status_code == 204


async def test_invalid_body_is_400(client):
    res = await client.post("/api/v1/synonyms/matches", json={})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_duplicate_node_ids_rejected_with_400(client):
    node = {"id": "a", "type": "thought", "position": {"x": 0, "y": 0}, "data": {"label": "A"}}
    res = await client.post("/api/v1/brain-dumps", json={"title": "dup", "nodes": [node, node]})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "GRAPH_VALIDATION_ERROR"
