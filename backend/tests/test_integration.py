"""
Integration tests: API against a temp SQLite DB.

conftest.py points DATABASE_URL at a throwaway file before the app is imported.
"""
import io

import openpyxl
import pytest
from fastapi.testclient import TestClient

from pharma_erp.main import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture(scope="module")
def customer_id(client):
    r = client.post("/api/customers", json={"name": "Apollo Pharmacy", "gst": "29ABCDE1234F1Z5", "phone": "9876543210"})
    assert r.status_code == 201
    return r.json()["id"]


@pytest.fixture(scope="module")
def item_id(client):
    r = client.post("/api/processed-inventory", json={"name": "Paracetamol Granules", "unit": "kg", "quantity": 200, "reorder_level": 20})
    assert r.status_code == 201
    return r.json()["id"]


def _invoice(party_id, items, number):
    return {
        "document_no": number,
        "party_type": "customer",
        "party_id": party_id,
        "issue_date": "2024-01-15",
        "items": items,
    }


class TestServiceEndpoints:
    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json()["docs"] == "/docs"

    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        assert r.json()["db"] == "ok"

    def test_settings(self, client):
        data = client.get("/api/settings").json()
        assert data["document_kinds"] == ["invoices", "quotations", "proforma-invoices"]
        assert data["transaction_max_attempts"] >= 1


class TestParties:
    def test_crud(self, client):
        r = client.post("/api/suppliers", json={"name": "ChemPharma Ltd", "email": "sales@chempharma.in"})
        assert r.status_code == 201
        sid = r.json()["id"]

        assert client.get(f"/api/suppliers/{sid}").json()["email"] == "sales@chempharma.in"
        assert [p["id"] for p in client.get("/api/suppliers", params={"search": "chem"}).json()] == [sid]

        r = client.put(f"/api/suppliers/{sid}", json={"name": "ChemPharma Pvt Ltd"})
        assert r.json()["name"] == "ChemPharma Pvt Ltd"

        assert client.delete(f"/api/suppliers/{sid}").json()["status"] == "deleted"
        assert client.get(f"/api/suppliers/{sid}").status_code == 404

    def test_blank_name_rejected(self, client):
        assert client.post("/api/customers", json={"name": "  "}).status_code == 422


class TestInventory:
    def test_receive_and_low_stock(self, client):
        r = client.post("/api/processed-inventory", json={"name": "Zinc Blend", "unit": "kg", "quantity": 5, "reorder_level": 10})
        zid = r.json()["id"]
        assert r.json()["low_stock"] is True
        assert zid in [i["id"] for i in client.get("/api/processed-inventory", params={"low_only": True}).json()]

        r = client.post(f"/api/processed-inventory/{zid}/receive", json={"quantity": 20, "note": "batch ZB-7"})
        assert r.status_code == 200
        assert (r.json()["before"], r.json()["after"]) == (5, 25)
        assert client.get(f"/api/processed-inventory/{zid}").json()["low_stock"] is False

    def test_quantity_not_patchable(self, client, item_id):
        assert client.patch(f"/api/processed-inventory/{item_id}", json={"quantity": 999}).status_code == 422

    def test_receive_unknown_item(self, client):
        r = client.post("/api/processed-inventory/nope/receive", json={"quantity": 1})
        assert r.status_code == 404
        assert r.json()["error"] == "NotFound"


class TestInvoices:
    def test_insufficient_stock_is_409(self, client, customer_id, item_id):
        r = client.post("/api/invoices", json=_invoice(customer_id, [
            {"catalog_item_id": item_id, "quantity": "150", "rate": "10"},
            {"catalog_item_id": item_id, "quantity": "60", "rate": "10"},
        ], "INV-20240115-0101"))
        assert r.status_code == 409
        assert r.json()["detail"] == "Insufficient stock for Paracetamol Granules. Available: 200, Required: 210"
        assert client.get(f"/api/processed-inventory/{item_id}").json()["quantity"] == 200

    def test_validation_is_422_with_field(self, client, customer_id):
        r = client.post("/api/invoices", json=_invoice(customer_id, [{"catalog_item_id": "", "quantity": 1}], "INV-X"))
        assert r.status_code == 422
        assert r.json()["field"] == "items"

    def test_unknown_item_is_404(self, client, customer_id):
        r = client.post("/api/invoices", json=_invoice(customer_id, [{"catalog_item_id": "ghost", "quantity": 1, "rate": 1}], "INV-Y"))
        assert r.status_code == 404

    def test_create_detail_patch_export(self, client, customer_id, item_id):
        r = client.post("/api/invoices", json=_invoice(customer_id, [
            {"catalog_item_id": item_id, "quantity": "10", "rate": "25", "tax_type": "CGST / SGST", "tax": "12"},
        ], "INV-20240115-0102"))
        assert r.status_code == 201
        created = r.json()
        assert created["total"] == 280
        assert created["stock_changes"][0]["after"] == 190

        detail = client.get(f"/api/invoices/{created['id']}").json()
        assert detail["party_name"] == "Apollo Pharmacy"
        [line] = detail["items"]
        assert line["amount"] == 250 and line["tax_amount"] == 30 and line["line_total"] == 280
        assert line["cgst_percent"] == 6 and line["sgst_percent"] == 6 and line["igst_percent"] == 0

        r = client.patch(f"/api/invoices/{created['id']}", json={"status": "Paid"})
        assert r.status_code == 200 and r.json()["status"] == "Paid"
        r = client.patch(f"/api/invoices/{created['id']}", json={"items": []})
        assert r.status_code == 422

        r = client.get("/api/invoices/export/csv", params={"search": "0102"})
        assert r.status_code == 200
        assert "text/csv" in r.headers["content-type"]
        lines = r.text.strip().splitlines()
        assert lines[0].startswith("Number,Manual No")
        assert "INV-20240115-0102" in lines[1]

        r = client.get("/api/invoices/export/xlsx")
        ws = openpyxl.load_workbook(io.BytesIO(r.content)).active
        assert ws.title == "Invoices"
        assert ws.cell(row=1, column=1).value == "Number"

        summary = client.get("/api/invoices/summary").json()
        assert summary["by_status"]["Paid"]["count"] >= 1

    def test_missing_document(self, client):
        assert client.get("/api/invoices/nope").status_code == 404
        assert client.delete("/api/invoices/nope").status_code == 404


class TestQuotations:
    def test_convert_to_invoice(self, client, customer_id, item_id):
        before = client.get(f"/api/processed-inventory/{item_id}").json()["quantity"]
        r = client.post("/api/quotations", json=_invoice(customer_id, [
            {"catalog_item_id": item_id, "quantity": 5, "rate": 30},
        ], "QT-20240115-0001"))
        assert r.status_code == 201
        qid = r.json()["id"]
        assert client.get(f"/api/processed-inventory/{item_id}").json()["quantity"] == before - 5

        r = client.post(f"/api/quotations/{qid}/convert", params={"target": "invoices"})
        assert r.status_code == 201
        assert r.json()["document_no"].startswith("INV-20240115-")
        assert client.get(f"/api/processed-inventory/{item_id}").json()["quantity"] == before - 5

    def test_unknown_target(self, client):
        assert client.post("/api/quotations/x/convert", params={"target": "receipts"}).status_code == 404

    def test_form_options(self, client, customer_id, item_id):
        data = client.get("/api/quotations/form-options").json()
        assert customer_id in [p["id"] for p in data["parties"]]
        assert item_id in [i["id"] for i in data["items"]]
        assert data["statuses"] == ["Pending", "Approved", "Rejected"]
        assert data["suggested_document_no"].startswith("QT-")


def test_proforma_requires_manual_number(client, customer_id):
    r = client.post("/api/proforma-invoices", json=_invoice(customer_id, [], "PI-20240115-0001"))
    assert r.status_code == 422
    assert r.json()["field"] == "manual_document_no"


def test_next_number(client):
    r = client.get("/api/proforma-invoices/next-number", params={"issue_date": "2024-03-09"})
    assert r.json()["document_no"].startswith("PI-20240309-")
