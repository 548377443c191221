class TestLoanStore:
    def test_add_get_list(self, store, loan_record_data):
        store.add_loan(loan_record_data)
        store.add_loan(dict(loan_record_data, id="loan-2"))
        assert store.get_loan("loan-1") == loan_record_data
        assert {loan["id"] for loan in store.list_loans()} == {"loan-1", "loan-2"}

    def test_update(self, store, loan_record_data):
        store.add_loan(loan_record_data)
        assert store.update_loan(dict(loan_record_data, name="Cabin"))
        assert store.get_loan("loan-1")["name"] == "Cabin"
        assert not store.update_loan(dict(loan_record_data, id="missing"))

    def test_delete_and_clear(self, store, loan_record_data):
        store.add_loan(loan_record_data)
        store.add_loan(dict(loan_record_data, id="loan-2"))
        assert store.delete_loan("loan-1")
        assert not store.delete_loan("loan-1")
        assert store.get_loan("loan-1") is None
        store.clear_loans()
        assert store.list_loans() == []


class TestPaymentEndpoint:
    def test_payment(self, client):
        response = client.post("/api/payment", json={"amount": 100000, "interestRate": 6, "term": 30, "termUnit": "years"})
        assert response.status_code == 200
        assert response.get_json() == {
            "monthlyPayment": 599.55,
            "totalPayment": 215838.19,
            "totalInterest": 115838.19,
        }

    def test_invalid_input(self, client):
        response = client.post("/api/payment", json={"amount": -5, "interestRate": 6, "term": 12})
        assert response.status_code == 400
        assert "Principal" in response.get_json()["error"]

    def test_not_json(self, client):
        response = client.post("/api/payment", data="hello")
        assert response.status_code == 400


class TestScheduleEndpoint:
    def test_preview_is_truncated(self, client, loan_record_data):
        loan_record_data["earlyPayments"] = []
        response = client.post("/api/schedule", json=loan_record_data)
        body = response.get_json()
        assert response.status_code == 200
        assert len(body["schedule"]) == 120
        assert body["summary"]["truncated"] == 240
        assert body["schedule"][0]["interest"] == 500.0

    def test_full_schedule(self, client, loan_record_data):
        loan_record_data["earlyPayments"] = []
        body = client.post("/api/schedule?full=1", json=loan_record_data).get_json()
        assert len(body["schedule"]) == 360
        assert "truncated" not in body["summary"]
        assert body["schedule"][-1]["balance"] == 0.0

    def test_recurring_camel_case_draft(self, client, loan_record_data):
        loan_record_data["earlyPayments"] = [
            {"id": "y", "type": "recurring", "amount": "100", "startMonth": "2", "frequencyMonths": "12"}
        ]
        response = client.post("/api/schedule?full=1", json=loan_record_data)
        assert response.status_code == 200
        extra_months = [row["payment_number"] for row in response.get_json()["schedule"] if row["extra"] > 0]
        assert extra_months[:3] == [2, 14, 26]

    def test_bad_record(self, client, loan_record_data):
        loan_record_data["amount"] = "lots"
        assert client.post("/api/schedule", json=loan_record_data).status_code == 400


class TestLoanEndpoints:
    def test_create_and_fetch(self, client, loan_record_data):
        response = client.post("/api/loans", json=loan_record_data)
        assert response.status_code == 201
        created = response.get_json()
        assert created["currentMonthlyPayment"] is not None
        assert created["freedomDate"] < "2054-01-01"
        assert client.get("/api/loans/loan-1").get_json() == created
        assert [loan["id"] for loan in client.get("/api/loans").get_json()] == ["loan-1"]

    def test_create_duplicate(self, client, loan_record_data):
        client.post("/api/loans", json=loan_record_data)
        assert client.post("/api/loans", json=loan_record_data).status_code == 400

    def test_update_recomputes(self, client, loan_record_data):
        created = client.post("/api/loans", json=loan_record_data).get_json()
        loan_record_data["earlyPayments"] = []
        updated = client.put("/api/loans/loan-1", json=loan_record_data).get_json()
        assert updated["freedomDate"] == "2054-01-01"
        assert updated["createdAt"] == created["createdAt"]

    def test_unknown_loan(self, client, loan_record_data):
        assert client.get("/api/loans/nope").status_code == 404
        assert client.put("/api/loans/nope", json=loan_record_data).status_code == 404
        assert client.delete("/api/loans/nope").status_code == 404
        assert client.get("/api/loans/nope/schedule").status_code == 404

    def test_delete(self, client, loan_record_data):
        client.post("/api/loans", json=loan_record_data)
        assert client.delete("/api/loans/loan-1").status_code == 204
        assert client.get("/api/loans").get_json() == []

    def test_clear(self, client, loan_record_data):
        client.post("/api/loans", json=loan_record_data)
        client.post("/api/loans", json=dict(loan_record_data, id="loan-2"))
        assert client.delete("/api/loans").status_code == 204
        assert client.get("/api/loans").get_json() == []
        assert client.get("/api/loans/loan-2").status_code == 404

    def test_schedule_and_savings(self, client, loan_record_data):
        client.post("/api/loans", json=loan_record_data)
        schedule = client.get("/api/loans/loan-1/schedule?full=1").get_json()["schedule"]
        savings = client.get("/api/loans/loan-1/savings").get_json()
        assert savings["periodDecrease"] == 360 - len(schedule)
        assert savings["interestSaved"] > 0
        assert savings["extraPaid"] == 50000.0
