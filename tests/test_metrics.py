"""
Prometheus metrics exposed at /metrics.
"""
import json

from flask import Flask

from finanzas.services.metrics import MetricsService, get_metrics_service, init_metrics


class TestMetricsService:

    def test_each_service_has_its_own_registry(self):
        first = MetricsService()
        second = MetricsService()
        first.record_webhook_event("stripe", "invoice.paid", "processed")
        assert 'provider="stripe"' in first.get_metrics()
        assert 'provider="stripe"' not in second.get_metrics()

    def test_disabled_service_records_nothing(self):
        service = MetricsService(enabled=False)
        service.record_webhook_event("stripe", "invoice.paid", "processed")
        assert service.get_metrics() == ""

    def test_route_normalization(self):
        service = MetricsService()
        route = service._normalize_route("/api/goals/0f8fad5b-d9cb-469f-a165-70867728950e")
        assert route == "/api/goals/{uuid}"
        assert service._normalize_route("/api/items/42") == "/api/items/{id}"

    def test_no_service_outside_app_context(self):
        assert get_metrics_service() is None

    def test_disabled_app_has_no_endpoint(self):
        app = Flask(__name__)
        app.config["METRICS_ENABLED"] = False
        init_metrics(app)
        assert app.test_client().get("/metrics").status_code == 404


def _sample(app, name, **labels):
    return app.extensions["metrics"].registry.get_sample_value(name, labels)


class TestMetricsEndpoint:

    def test_endpoint_serves_exposition_format(self, client):
        client.get("/health")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.content_type.startswith("text/plain")
        assert "finanzas_http_requests_total" in response.get_data(as_text=True)

    def test_http_requests_are_counted(self, app, client):
        client.get("/health")
        client.get("/health")
        assert _sample(app, "finanzas_http_requests_total",
                       route="/health", method="GET", status="200") == 2.0

    def test_webhook_rejections_are_counted(self, app, client):
        client.post("/api/webhooks/stripe", data=json.dumps({"type": "invoice.paid"}))
        assert _sample(app, "finanzas_webhook_events_total",
                       provider="stripe", event="signature", outcome="rejected") == 1.0

    def test_gate_decisions_are_counted(self, app, client, auth_headers):
        client.get("/api/transactions", headers=auth_headers)
        assert _sample(app, "finanzas_subscription_gate_total",
                       decision="denied", source="none") == 1.0
