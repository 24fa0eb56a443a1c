import pytest

from soapnotes import create_app
from soapnotes.config import get_config
from soapnotes.models import FAILED, SKIPPED, WRITTEN, BatchResult, ProcessOutcome


class StubService:
    def __init__(self):
        self.calls = []

    def on_form_submit(self):
        self.calls.append("form")
        return ProcessOutcome(WRITTEN, 2, doc_id="doc-1")

    def on_sheet_change(self):
        self.calls.append("change")
        return ProcessOutcome(SKIPPED, 2, reason="already processed")

    def run_batch(self):
        self.calls.append("batch")
        return BatchResult(outcomes=[ProcessOutcome(WRITTEN, 3), ProcessOutcome(FAILED, 4, reason="x")])

    def process_row(self, row_number):
        self.calls.append(("row", row_number))
        raise RuntimeError("sheet unavailable")


@pytest.fixture()
def stub():
    return StubService()


@pytest.fixture()
def client(stub):
    app = create_app(get_config("test"), soap_note_service=stub)
    return app.test_client()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["scheduler"] == {"status": "not_initialized"}


def test_form_submit(client, stub):
    response = client.post("/triggers/form-submit")
    assert response.status_code == 200
    assert response.get_json() == {"status": WRITTEN, "row_number": 2, "doc_id": "doc-1", "reason": ""}
    assert stub.calls == ["form"]


def test_sheet_change(client):
    response = client.post("/triggers/sheet-change")
    assert response.get_json()["reason"] == "already processed"


def test_batch_run_summary(client):
    data = client.post("/triggers/batch-run").get_json()
    assert (data["written"], data["skipped"], data["failed"]) == (1, 0, 1)
    assert len(data["rows"]) == 2


def test_row_errors_are_reported_not_raised(client, stub):
    response = client.post("/triggers/rows/7")
    assert response.status_code == 500
    assert response.get_json()["reason"] == "sheet unavailable"
    assert stub.calls == [("row", 7)]


def test_trigger_secret_enforced(stub):
    config = get_config("test")
    config.TRIGGER_SHARED_SECRET = "s3cret"
    client = create_app(config, soap_note_service=stub).test_client()

    assert client.post("/triggers/form-submit").status_code == 403
    assert client.post("/triggers/form-submit", headers={"X-Trigger-Secret": "nope"}).status_code == 403
    assert client.post("/triggers/form-submit", headers={"X-Trigger-Secret": "s3cret"}).status_code == 200
    assert stub.calls == ["form"]


def test_cli_derive_code(stub):
    app = create_app(get_config("test"), soap_note_service=stub)
    result = app.test_cli_runner().invoke(args=["soap", "derive-code", "John S. (ABA)"])
    assert "code: JS" in result.output
    assert "prefix: JS_SOAP_LOG_" in result.output


def test_cli_run_batch(stub):
    app = create_app(get_config("test"), soap_note_service=stub)
    result = app.test_cli_runner().invoke(args=["soap", "run-batch"])
    assert '"written": 1' in result.output
    assert stub.calls == ["batch"]
