def test_reports_empty(client):
    res = client.get("/api/reports/by-person")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["people"] == []
    assert data["grandTotalIncome"] == 0
    assert data["grandTotalExpense"] == 0
    assert data["grandTotalBalance"] == 0

    res_cat = client.get("/api/reports/by-category")
    assert res_cat.status_code == 200
    assert res_cat.json()["data"]["categories"] == []


def test_report_by_person(client, api):
    bob = api["create_person"]("Bob", 30)
    ana = api["create_person"]("Ana", 17)
    carla = api["create_person"]("Carla", 45)
    mercado = api["create_category"]("Mercado", 0)
    salario = api["create_category"]("Salário", 1)

    api["create_transaction"](bob["id"], mercado["id"], "50.00", 0)
    api["create_transaction"](ana["id"], mercado["id"], "10.25", 0)
    api["create_transaction"](carla["id"], salario["id"], "3000.00", 1)
    api["create_transaction"](carla["id"], mercado["id"], "120.75", 0)

    res = client.get("/api/reports/by-person")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True

    report = body["data"]
    by_name = {p["personName"]: p for p in report["people"]}
    assert set(by_name) == {"Bob", "Ana", "Carla"}

    assert by_name["Bob"]["totalIncome"] == 0
    assert by_name["Bob"]["totalExpense"] == 50.0
    assert by_name["Bob"]["balance"] == -50.0
    assert by_name["Bob"]["personId"] == bob["id"]

    assert by_name["Carla"]["totalIncome"] == 3000.0
    assert by_name["Carla"]["balance"] == 2879.25

    assert report["grandTotalIncome"] == 3000.0
    assert report["grandTotalExpense"] == 181.0
    assert report["grandTotalBalance"] == 2819.0


def test_report_by_category(client, api):
    bob = api["create_person"]("Bob", 30)
    mercado = api["create_category"]("Mercado", 0)
    extra = api["create_category"]("Extra", 2)
    api["create_category"]("Vazia", 2)

    api["create_transaction"](bob["id"], mercado["id"], "40", 0)
    api["create_transaction"](bob["id"], extra["id"], "100", 1)
    api["create_transaction"](bob["id"], extra["id"], "30", 0)

    report = client.get("/api/reports/by-category").json()["data"]
    by_desc = {c["categoryDescription"]: c for c in report["categories"]}

    assert by_desc["Mercado"]["totalExpense"] == 40.0
    assert by_desc["Extra"]["totalIncome"] == 100.0
    assert by_desc["Extra"]["totalExpense"] == 30.0
    assert by_desc["Extra"]["balance"] == 70.0
    assert by_desc["Vazia"]["balance"] == 0
    assert by_desc["Extra"]["categoryId"] == extra["id"]

    assert report["grandTotalIncome"] == 100.0
    assert report["grandTotalExpense"] == 70.0
    assert report["grandTotalBalance"] == 30.0


def test_report_drops_deleted_person(client, api):
    bob = api["create_person"]("Bob", 30)
    ana = api["create_person"]("Ana", 40)
    cat = api["create_category"]("Mercado", 0)
    api["create_transaction"](bob["id"], cat["id"], "50", 0)
    api["create_transaction"](ana["id"], cat["id"], "5", 0)

    client.delete(f"/api/people/{bob['id']}")

    report = client.get("/api/reports/by-person").json()["data"]
    assert [p["personName"] for p in report["people"]] == ["Ana"]
    assert report["grandTotalExpense"] == 5.0

    by_cat = client.get("/api/reports/by-category").json()["data"]
    assert by_cat["grandTotalExpense"] == 5.0
