# -*- coding: utf-8 -*-
"""
Categories, default provisioning and subcategories.
"""
from conftest import new_id


def _category(client, headers, name="Mascotas", type_="expense", **extra):
    body = {"name": name, "type": type_}
    body.update(extra)
    return client.post("/api/categories", json=body, headers=headers)


class TestCategories:

    def test_list_is_empty_and_never_seeds(self, client, auth_headers):
        data = client.get("/api/categories", headers=auth_headers).get_json()["data"]
        assert data == {"categories": [], "grouped": {"income": [], "expense": []},
                        "hasCustomCategories": False}

    def test_create_with_defaults(self, client, auth_headers):
        response = _category(client, auth_headers)
        assert response.status_code == 201
        category = response.get_json()["data"]["category"]
        assert category["icon"] == "tag"
        assert category["color"] == "#D4AF37"

        data = client.get("/api/categories", headers=auth_headers).get_json()["data"]
        assert data["hasCustomCategories"] is True
        assert [c["name"] for c in data["grouped"]["expense"]] == ["Mascotas"]

    def test_invalid_color(self, client, auth_headers):
        response = _category(client, auth_headers, color="red")
        assert response.status_code == 400

    def test_transfer_is_not_a_category_type(self, client, auth_headers):
        response = _category(client, auth_headers, type_="transfer")
        assert response.status_code == 400

    def test_duplicate_name_same_type(self, client, auth_headers):
        _category(client, auth_headers)
        response = _category(client, auth_headers, name="mascotas")
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "Ya existe una categoría con ese nombre"

    def test_same_name_other_type_allowed(self, client, auth_headers):
        _category(client, auth_headers, name="Otros")
        assert _category(client, auth_headers, name="Otros", type_="income").status_code == 201

    def test_init_is_idempotent(self, client, auth_headers):
        first = client.post("/api/categories/init", headers=auth_headers)
        assert first.status_code == 201
        assert first.get_json()["data"]["created"] == 11

        second = client.post("/api/categories/init", headers=auth_headers)
        assert second.status_code == 200
        data = second.get_json()["data"]
        assert data["created"] == 0
        assert data["message"] == "Ya tienes categorías configuradas"
        assert len(data["categories"]) == 11

    def test_init_fills_gaps_only(self, client, auth_headers):
        _category(client, auth_headers, name="salario", type_="income")
        data = client.post("/api/categories/init", headers=auth_headers).get_json()["data"]
        assert data["created"] == 10

    def test_rename(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        response = client.put(f"/api/categories/{category['id']}", json={"name": "Perros"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["category"]["name"] == "Perros"

    def test_rename_collision(self, client, auth_headers):
        _category(client, auth_headers, name="Perros")
        category = _category(client, auth_headers).get_json()["data"]["category"]
        response = client.put(f"/api/categories/{category['id']}", json={"name": "PERROS"}, headers=auth_headers)
        assert response.status_code == 400

    def test_delete_refused_while_in_use(self, client, auth_headers, subscribed):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        for _ in range(2):
            client.post("/api/transactions", json={
                "type": "expense", "amount": 100, "date": "2026-01-01", "category": "Mascotas"},
                headers=auth_headers)

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == (
            "No se puede eliminar. Hay 2 transacciones usando esta categoría.")

    def test_delete_unused(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/categories", headers=auth_headers).get_json()["data"]["categories"] == []

    def test_other_users_category(self, client, auth_headers, other_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        assert client.delete(f"/api/categories/{category['id']}", headers=other_headers).status_code == 404


class TestSubcategories:

    def test_create_and_list(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        response = client.post("/api/subcategories", json={
            "category_id": category["id"], "name": "Veterinario",
            "provider_name": "Clínica Patitas", "client_email": ""}, headers=auth_headers)
        assert response.status_code == 201
        sub = response.get_json()["data"]["subcategory"]
        assert sub["provider_name"] == "Clínica Patitas"
        assert sub["client_email"] is None

        listed = client.get(f"/api/subcategories?category_id={category['id']}",
                            headers=auth_headers).get_json()["data"]["subcategories"]
        assert [s["name"] for s in listed] == ["Veterinario"]

    def test_requires_category_and_name(self, client, auth_headers):
        response = client.post("/api/subcategories", json={"name": "x"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "category_id y nombre son requeridos"

    def test_unknown_category(self, client, auth_headers):
        response = client.post("/api/subcategories", json={"category_id": new_id(), "name": "x"},
                               headers=auth_headers)
        assert response.status_code == 404

    def test_duplicate_within_category(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        body = {"category_id": category["id"], "name": "Comida"}
        client.post("/api/subcategories", json=body, headers=auth_headers)
        response = client.post("/api/subcategories", json=dict(body, name="comida"), headers=auth_headers)
        assert response.status_code == 400

    def test_update_and_delete(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        sub = client.post("/api/subcategories", json={"category_id": category["id"], "name": "Comida"},
                          headers=auth_headers).get_json()["data"]["subcategory"]

        response = client.put(f"/api/subcategories/{sub['id']}", json={"payment_method": "Nequi"},
                              headers=auth_headers)
        assert response.get_json()["data"]["subcategory"]["payment_method"] == "Nequi"

        assert client.delete(f"/api/subcategories/{sub['id']}", headers=auth_headers).status_code == 200
        assert client.get("/api/subcategories", headers=auth_headers).get_json()["data"]["subcategories"] == []

    def test_deleting_category_removes_subcategories(self, client, auth_headers):
        category = _category(client, auth_headers).get_json()["data"]["category"]
        client.post("/api/subcategories", json={"category_id": category["id"], "name": "Comida"},
                    headers=auth_headers)
        client.delete(f"/api/categories/{category['id']}", headers=auth_headers)
        assert client.get("/api/subcategories", headers=auth_headers).get_json()["data"]["subcategories"] == []
