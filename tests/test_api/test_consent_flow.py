"""
End-to-end consent flows over HTTP.

Runs the FastAPI application with the in-memory adapter and exercises
the public wire format (camelCase JSON, error envelope).
"""

import pytest

BASE = "/api/consentry"


class TestConsentFlow:
    """Set, verify, inspect and withdraw through the HTTP API."""

    def test_cookie_banner_round_trip(self, client):
        set_response = client.post(f"{BASE}/consent/set", json={
            "type": "cookie_banner",
            "domain": "shop.example",
            "externalSubjectId": "visitor-42",
            "preferences": {"analytics": True, "marketing": True, "ads": False},
        })

        assert set_response.status_code == 200
        created = set_response.json()
        assert created["domain"] == "shop.example"
        assert created["type"] == "cookie_banner"
        assert created["externalSubjectId"] == "visitor-42"
        assert "givenAt" in created
        assert "metadata" not in created

        verify_response = client.post(f"{BASE}/consent/verify", json={
            "type": "cookie_banner",
            "domain": "shop.example",
            "externalSubjectId": "visitor-42",
            "preferences": ["analytics"],
        })

        assert verify_response.status_code == 200
        verified = verify_response.json()
        assert verified["isValid"] is True
        assert verified["consent"]["id"] == created["id"]
        assert "reasons" not in verified

        get_response = client.get(f"{BASE}/consent/get", params={"externalId": "visitor-42"})
        assert get_response.json()["data"]["hasActiveConsent"] is True

        withdraw_response = client.post(f"{BASE}/consent/withdraw", json={"consentId": created["id"]})
        assert withdraw_response.status_code == 200
        assert withdraw_response.json()["data"]["consentIds"] == [created["id"]]

        after = client.post(f"{BASE}/consent/verify", json={
            "type": "cookie_banner",
            "domain": "shop.example",
            "externalSubjectId": "visitor-42",
            "preferences": ["analytics"],
        })
        assert after.json()["isValid"] is False

    def test_verify_without_consent(self, client):
        client.post(f"{BASE}/consent/set", json={
            "type": "privacy_policy",
            "domain": "shop.example",
            "externalSubjectId": "visitor-42",
        })

        response = client.post(f"{BASE}/consent/verify", json={
            "type": "dpa",
            "domain": "shop.example",
            "externalSubjectId": "visitor-42",
        })

        assert response.status_code == 200
        assert response.json() == {"isValid": False, "reasons": ["No consent found for the given policy"]}

    def test_validation_error_envelope(self, client):
        response = client.post(f"{BASE}/consent/set", json={"type": "cookie_banner", "domain": ""})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "INPUT_VALIDATION_FAILED"
        assert set(body["meta"]["fieldErrors"]) >= {"domain", "preferences"}
        assert body["meta"]["formErrors"] == []

    def test_policy_not_found_envelope(self, client):
        response = client.post(f"{BASE}/consent/set", json={
            "type": "privacy_policy",
            "domain": "shop.example",
            "policyId": "pol_missing",
        })

        assert response.status_code == 404
        assert response.json()["code"] == "POLICY_NOT_FOUND"
        assert response.json()["meta"]["policyId"] == "pol_missing"

    @pytest.mark.parametrize(
        "country,show,code",
        [("DE", True, "GDPR"), ("US", False, "NONE"), ("CH", True, "CH"), (None, True, "NONE")],
    )
    def test_show_banner(self, client, country, show, code):
        headers = {"cf-ipcountry": country} if country else {}

        response = client.get(f"{BASE}/show-consent-banner", headers=headers)

        assert response.status_code == 200
        assert response.json()["showConsentBanner"] is show
        assert response.json()["jurisdiction"]["code"] == code


class TestOriginCheckOverHttp:
    """Cookie-bearing POSTs must come from a trusted origin."""

    def test_untrusted_origin_rejected(self, client):
        response = client.post(
            f"{BASE}/consent/set",
            json={"type": "other", "domain": "shop.example"},
            headers={"cookie": "session=abc", "origin": "https://evil.example"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "INVALID_ORIGIN"

    def test_trusted_origin_accepted(self, client):
        response = client.post(
            f"{BASE}/consent/set",
            json={"type": "other", "domain": "shop.example"},
            headers={"cookie": "session=abc", "origin": "https://app.example.com"},
        )

        assert response.status_code == 200

    def test_untrusted_callback_url(self, client):
        response = client.post(
            f"{BASE}/consent/set",
            json={"type": "other", "domain": "shop.example", "callbackURL": "https://evil.example/cb"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "INVALID_CALLBACK_URL"

    def test_relative_callback_url(self, client):
        response = client.post(
            f"{BASE}/consent/set",
            json={"type": "other", "domain": "shop.example", "callbackURL": "/thanks"},
        )

        assert response.status_code == 200


class TestApplication:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_correlation_id_echoed(self, client):
        response = client.get(f"{BASE}/ok", headers={"X-Correlation-ID": "corr-123"})

        assert response.headers["x-correlation-id"] == "corr-123"

    def test_correlation_id_generated(self, client):
        response = client.get(f"{BASE}/ok")

        assert response.headers["x-correlation-id"]
        assert response.headers["x-response-time"].endswith("ms")

    def test_cors_preflight_for_trusted_origin(self, client):
        response = client.options(
            f"{BASE}/consent/set",
            headers={
                "origin": "https://app.example.com",
                "access-control-request-method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
