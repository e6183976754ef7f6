# -*- coding: utf-8 -*-
"""
Savings goals CRUD.
"""
from conftest import new_id


def _goal(client, headers, **fields):
    body = {"name": "Viaje", "target": 3000000}
    body.update(fields)
    return client.post("/api/goals", json=body, headers=headers)


class TestGoals:

    def test_create_with_defaults(self, client, auth_headers):
        response = _goal(client, auth_headers)
        assert response.status_code == 201
        goal = response.get_json()["data"]["goal"]
        assert goal["target"] == 3000000
        assert goal["current"] == 0
        assert goal["color"] == "#D4AF37"

    def test_name_and_target_required(self, client, auth_headers):
        response = client.post("/api/goals", json={"name": "Viaje"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "Nombre y objetivo son requeridos"

    def test_target_must_be_positive(self, client, auth_headers):
        assert _goal(client, auth_headers, target=0).status_code == 400

    def test_negative_progress_clamped(self, client, auth_headers):
        goal = _goal(client, auth_headers, current=-50).get_json()["data"]["goal"]
        assert goal["current"] == 0

    def test_list_newest_first(self, client, auth_headers):
        _goal(client, auth_headers, name="Primera")
        _goal(client, auth_headers, name="Segunda")
        goals = client.get("/api/goals", headers=auth_headers).get_json()["data"]["goals"]
        assert [g["name"] for g in goals] == ["Segunda", "Primera"]

    def test_update_progress(self, client, auth_headers):
        goal = _goal(client, auth_headers).get_json()["data"]["goal"]
        response = client.put(f"/api/goals/{goal['id']}", json={"current": 450000}, headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["goal"]["current"] == 450000

    def test_empty_update(self, client, auth_headers):
        goal = _goal(client, auth_headers).get_json()["data"]["goal"]
        assert client.put(f"/api/goals/{goal['id']}", json={}, headers=auth_headers).status_code == 400

    def test_get_and_delete(self, client, auth_headers):
        goal = _goal(client, auth_headers).get_json()["data"]["goal"]
        assert client.get(f"/api/goals/{goal['id']}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/goals/{goal['id']}", headers=auth_headers).status_code == 200
        response = client.get(f"/api/goals/{goal['id']}", headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()["error"]["message"] == "Meta no encontrada"

    def test_isolation(self, client, auth_headers, other_headers):
        goal = _goal(client, auth_headers).get_json()["data"]["goal"]
        assert client.get(f"/api/goals/{goal['id']}", headers=other_headers).status_code == 404
        assert client.get("/api/goals", headers=other_headers).get_json()["data"]["goals"] == []

    def test_unknown_goal(self, client, auth_headers):
        assert client.delete(f"/api/goals/{new_id()}", headers=auth_headers).status_code == 404
