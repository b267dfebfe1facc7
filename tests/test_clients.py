"""
Cadastro: autenticação, salão, clientes/fornecedores, serviços e dashboard.
"""


class TestAuth:

    async def test_register_and_login(self, client):
        registered = await client.post("/api/auth/register", json={
            "name": "João Marceneiro",
            "email": "Joao@Example.com",
            "password": "segredo1",
            "salonName": "Oficina do João",
        })
        assert registered.status_code == 201, registered.text
        body = registered.json()
        assert body["token"]
        assert body["user"]["email"] == "joao@example.com"
        assert body["salon"]["name"] == "Oficina do João"

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json()["salon"]["id"] == body["salon"]["id"]

        logged = await client.post("/api/auth/login", json={"email": "joao@example.com", "password": "segredo1"})
        assert logged.status_code == 200
        assert logged.json()["user"]["lastLoginAt"] is not None

    async def test_duplicate_email(self, client, tenant):
        response = await client.post("/api/auth/register", json={
            "name": "Outro",
            "email": "alfa@example.com",
            "password": "segredo1",
            "salonName": "Outra oficina",
        })
        assert response.status_code == 409

    async def test_wrong_password(self, client, tenant):
        response = await client.post("/api/auth/login", json={"email": "alfa@example.com", "password": "errada123"})
        assert response.status_code == 401
        assert response.json() == {"message": "Email ou senha incorretos."}

    async def test_invalid_token(self, client):
        response = await client.get("/api/clients", headers={"Authorization": "Bearer invalido"})
        assert response.status_code == 401


class TestSettings:

    async def test_update_working_days(self, client, auth):
        response = await client.patch("/api/settings", json={
            "openTime": "08:00",
            "closeTime": "18:00",
            "workingDays": [5, 1, 1, 2],
        }, headers=auth)

        assert response.status_code == 200, response.text
        salon = response.json()["salon"]
        assert salon["workingDays"] == [1, 2, 5]
        assert salon["openTime"] == "08:00"

        fetched = (await client.get("/api/settings", headers=auth)).json()["salon"]
        assert fetched["closeTime"] == "18:00"

    async def test_invalid_day(self, client, auth):
        response = await client.patch("/api/settings", json={"workingDays": [7]}, headers=auth)
        assert response.status_code == 400

    async def test_invalid_time(self, client, auth):
        response = await client.patch("/api/settings", json={"openTime": "25:00"}, headers=auth)
        assert response.status_code == 400
        assert response.json()["message"].startswith("openTime")


class TestClients:

    async def test_phone_is_normalized(self, customer):
        assert customer["phone"] == "11988887777"
        assert customer["type"] == "CLIENTE"

    async def test_duplicate_phone(self, client, auth, customer):
        response = await client.post(
            "/api/clients", json={"name": "Maria S.", "phone": "11 98888 7777"}, headers=auth
        )
        assert response.status_code == 409

    async def test_same_phone_in_other_tenant(self, client, customer, other_tenant):
        response = await client.post(
            "/api/clients",
            json={"name": "Maria Souza", "phone": "11988887777"},
            headers=other_tenant["headers"],
        )
        assert response.status_code == 201

    async def test_short_phone(self, client, auth):
        response = await client.post("/api/clients", json={"name": "Ana", "phone": "123"}, headers=auth)
        assert response.status_code == 400

    async def test_search_and_type_filter(self, client, auth, customer, supplier):
        both = await client.post(
            "/api/clients", json={"name": "Zeca Ferragens", "phone": "1144445555", "type": "both"}, headers=auth
        )
        assert both.status_code == 201

        suppliers = (await client.get("/api/clients", params={"type": "FORNECEDOR"}, headers=auth)).json()
        assert [c["name"] for c in suppliers["clients"]] == ["Madeireira Central", "Zeca Ferragens"]

        found = (await client.get("/api/clients", params={"q": "98888"}, headers=auth)).json()
        assert [c["id"] for c in found["clients"]] == [customer["id"]]

    async def test_delete_blocked_by_order(self, client, auth, customer):
        await client.post("/api/orders", json={
            "clientId": customer["id"],
            "items": [{"name": "Mesa", "quantity": 1, "unitPriceCents": 90000}],
        }, headers=auth)

        response = await client.delete(f"/api/clients/{customer['id']}", headers=auth)
        assert response.status_code == 409

    async def test_delete_blocked_by_budget(self, client, auth, customer):
        created = await client.post("/api/budgets", json={
            "clientId": customer["id"],
            "items": [{"name": "Balcão", "quantity": 1, "unitPriceCents": 70000}],
        }, headers=auth)
        assert created.status_code == 201, created.text

        response = await client.delete(f"/api/clients/{customer['id']}", headers=auth)
        assert response.status_code == 409

        budgets = (await client.get("/api/budgets", headers=auth)).json()["budgets"]
        assert [b["client"]["id"] for b in budgets] == [customer["id"]]

    async def test_delete_blocked_by_supplier_payable(self, client, auth, supplier):
        await client.post("/api/payables", json={
            "description": "Compensado",
            "supplierId": supplier["id"],
            "installments": [{"dueDate": "2024-06-10", "amountCents": 4000}],
        }, headers=auth)

        response = await client.delete(f"/api/clients/{supplier['id']}", headers=auth)
        assert response.status_code == 409
        assert "contas a pagar" in response.json()["message"]

    async def test_delete(self, client, auth, customer):
        response = await client.delete(f"/api/clients/{customer['id']}", headers=auth)
        assert response.status_code == 200

        response = await client.get(f"/api/clients/{customer['id']}", headers=auth)
        assert response.status_code == 404


class TestServices:

    async def test_toggle_and_delete_in_use(self, client, auth, customer):
        service = (await client.post(
            "/api/services", json={"name": "Instalação", "price": 15000}, headers=auth
        )).json()["service"]
        assert service["isActive"] is True

        booked = await client.post("/api/appointments", json={
            "clientId": customer["id"],
            "serviceId": service["id"],
            "startAt": "2024-03-10T14:00:00",
        }, headers=auth)
        assert booked.status_code == 201, booked.text

        toggled = await client.patch(f"/api/services/{service['id']}/toggle", headers=auth)
        assert toggled.json()["service"]["isActive"] is False

        response = await client.post("/api/appointments", json={
            "clientId": customer["id"],
            "serviceId": service["id"],
            "startAt": "2024-03-11T14:00:00",
        }, headers=auth)
        assert response.status_code == 400

        response = await client.delete(f"/api/services/{service['id']}", headers=auth)
        assert response.status_code == 409


class TestDashboard:

    async def test_overview(self, client, auth, customer):
        await client.post("/api/orders", json={
            "clientId": customer["id"],
            "items": [{"name": "Painel de TV", "quantity": 1, "unitPriceCents": 120000}],
            "firstDueDate": "2024-03-06",
        }, headers=auth)

        response = await client.get("/api/dashboard/overview", params={"weekStart": "2024-03-06"}, headers=auth)

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["clientsCount"] == 1
        assert body["weekStart"].startswith("2024-03-04")
        assert len(body["week"]) == 7
        assert body["week"][2] == {"date": "2024-03-06", "receivablesCents": 120000, "payablesCents": 0}

    async def test_next_deliveries_only_in_progress(self, client, auth, customer):
        base = {"clientId": customer["id"], "items": [{"name": "Rack", "quantity": 1, "unitPriceCents": 60000}]}
        quote = (await client.post("/api/orders", json={
            **base, "status": "ORCAMENTO", "expectedDeliveryAt": "2024-05-10T12:00:00",
        }, headers=auth)).json()["order"]
        production = (await client.post("/api/orders", json={
            **base, "status": "EM_PRODUCAO", "expectedDeliveryAt": "2024-05-20T12:00:00",
        }, headers=auth)).json()["order"]
        ready = (await client.post("/api/orders", json={
            **base, "status": "PRONTO", "expectedDeliveryAt": "2024-05-15T12:00:00",
        }, headers=auth)).json()["order"]

        body = (await client.get("/api/dashboard/overview", headers=auth)).json()

        ids = [d["id"] for d in body["nextDeliveries"]]
        assert ids == [ready["id"], production["id"]]
        assert quote["id"] not in ids
