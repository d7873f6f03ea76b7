import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


def _messages(caplog):
    return [record.getMessage() for record in caplog.records]


class TestCorrelationIdMiddleware:
    def test_echoes_supplied_request_id(self, client):
        response = client.get("/health", HTTP_X_REQUEST_ID="pedido-42.retry:1")
        assert response["X-Request-ID"] == "pedido-42.retry:1"

    def test_mints_uuid4_without_header(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert uuid.UUID(request_id).version == 4

    @pytest.mark.parametrize(
        "supplied",
        ["", "con espacios", "x" * 129, "inyección\nfalsa=1"],
    )
    def test_replaces_unsafe_request_id(self, client, supplied):
        request_id = client.get("/health", HTTP_X_REQUEST_ID=supplied)["X-Request-ID"]
        assert request_id != supplied
        assert uuid.UUID(request_id).version == 4

    def test_request_logs_carry_correlation_id_and_path(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID="log-test-456")

        finished = [m for m in _messages(caplog) if "request_finished" in m]
        assert finished
        assert "log-test-456" in finished[0]
        assert "/health" in finished[0]

    def test_domain_logs_inherit_correlation_id(self, auth_client, order, product, caplog):
        with caplog.at_level(logging.INFO):
            auth_client.post(
                f"/api/v1/orders/{order.id}/items/",
                {"product_id": str(product.id), "quantity": 1},
                format="json",
                HTTP_X_REQUEST_ID="alta-item-789",
            )

        ledger_lines = [m for m in _messages(caplog) if "ledger." in m]
        assert ledger_lines
        assert all("alta-item-789" in line for line in ledger_lines)
