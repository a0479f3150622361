import pytest

from inventory_api.services.dashboard_service import profit_percentage


def test_profit_percentage():
    assert profit_percentage(2, 3) == 50.0
    assert profit_percentage(3, 2) == pytest.approx(-33.33)
    assert profit_percentage(0, 5) == 0.0


def test_stats_are_role_scoped(client, admin_headers, staff_headers, category, create_product):
    create_product(name="A", costPrice=2, sellingPrice=3, quantityInStock=10, categoryId=category.id)
    create_product(name="B", costPrice=1, sellingPrice=4, quantityInStock=2)
    create_product(name="C", costPrice=1, sellingPrice=1, quantityInStock=0)

    staff = client.get("/api/dashboard/stats", headers=staff_headers).json()["data"]
    assert staff["totalProducts"] == 3
    assert staff["totalItemsInStock"] == 12
    assert staff["lowStockCount"] == 1
    assert staff["outOfStockCount"] == 1
    assert "totalCostValue" not in staff
    assert "recentStockMovements" not in staff

    admin = client.get("/api/dashboard/stats", headers=admin_headers).json()["data"]
    assert admin["totalCostValue"] == 22.0
    assert admin["totalSellingValue"] == 38.0
    assert admin["potentialProfit"] == 16.0
    assert [p["name"] for p in admin["topProfitableProducts"]] == ["B", "A"]
    assert [p["name"] for p in admin["lowStockProducts"]] == ["C", "B"]
    assert admin["recentStockMovements"][0]["productName"] in {"A", "B"}
    breakdown = {c["name"]: c for c in admin["categoryBreakdown"]}
    assert breakdown["Incense"]["productCount"] == 1
    assert breakdown["Incense"]["totalItems"] == 10


def test_low_stock_lists_lowest_first(client, staff_headers, admin_headers, create_product):
    create_product(name="Few", quantityInStock=4)
    create_product(name="None", quantityInStock=0)
    create_product(name="Plenty", quantityInStock=40)

    r = client.get("/api/dashboard/low-stock", headers=staff_headers)
    body = r.json()
    assert body["count"] == 2
    assert [p["name"] for p in body["data"]] == ["None", "Few"]
    assert "costPrice" not in body["data"][0]

    r = client.get("/api/dashboard/low-stock", headers=admin_headers)
    assert "costPrice" in r.json()["data"][0]


def test_profit_calculator_is_admin_only(client, staff_headers):
    assert client.get("/api/dashboard/profit-calculator", headers=staff_headers).status_code == 403


def test_profit_calculator(client, admin_headers, create_product):
    create_product(name="Cheap", costPrice=1, sellingPrice=1.5, quantityInStock=10)
    create_product(name="Dear", costPrice=10, sellingPrice=16, quantityInStock=2)
    create_product(name="Free", costPrice=0, sellingPrice=2, quantityInStock=1)

    report = client.get("/api/dashboard/profit-calculator", headers=admin_headers).json()["data"]
    assert [p["name"] for p in report["products"]] == ["Dear", "Cheap", "Free"]
    dear = report["products"][0]
    assert dear["profitPerUnit"] == 6.0
    assert dear["totalPotentialProfit"] == 12.0
    assert dear["profitPercentage"] == 60.0
    assert report["products"][2]["profitPercentage"] == 0.0

    summary = report["summary"]
    assert summary["totalCostValue"] == 30.0
    assert summary["totalSellingValue"] == 49.0
    assert summary["totalPotentialProfit"] == 19.0
    assert summary["overallProfitMargin"] == 63.33


def test_profit_calculator_with_zero_cost(client, admin_headers, create_product):
    create_product(name="Gift", costPrice=0, sellingPrice=0, quantityInStock=0)
    summary = client.get("/api/dashboard/profit-calculator", headers=admin_headers).json()["data"]["summary"]
    assert summary["overallProfitMargin"] == 0.0
