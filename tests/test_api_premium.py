import pytest

from backend.app.core.config import settings

from helpers import auth_header, login, register

ADMIN_PASSWORD = "admin-password-123"


@pytest.fixture
def admin_token(client, monkeypatch):
    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", ADMIN_PASSWORD)
    response = client.post("/api/v1/admin/bootstrap")
    assert response.status_code == 201
    return login(client, username=settings.BOOTSTRAP_ADMIN_USERNAME, password=ADMIN_PASSWORD).json()["token"]


@pytest.fixture
def user_token(client):
    register(client)
    return login(client).json()["token"]


def _generate(client, token, hours=24):
    return client.post(
        "/api/v1/admin/premium/generate",
        json={"duration": f"{hours} hours", "durationHours": hours, "notes": "launch"},
        headers=auth_header(token),
    )


class TestAdmin:
    def test_bootstrap_refused_without_password(self, client):
        response = client.post("/api/v1/admin/bootstrap")

        assert response.status_code == 400
        assert response.json()["detail"] == "Admin bootstrap is not configured"

    def test_bootstrap_only_once(self, client, admin_token):
        response = client.post("/api/v1/admin/bootstrap")

        assert response.status_code == 400
        assert response.json()["detail"] == "Admin account already exists"

    def test_generate_and_list_codes(self, client, admin_token):
        created = _generate(client, admin_token)

        assert created.status_code == 201
        code = created.json()["code"]
        assert len(code["code"]) == 8
        assert code["durationHours"] == 24
        assert code["isUsed"] is False
        assert code["notes"] == "launch"

        listed = client.get("/api/v1/admin/premium/codes", headers=auth_header(admin_token))
        assert [c["code"] for c in listed.json()["codes"]] == [code["code"]]

    def test_regular_users_are_turned_away(self, client, user_token):
        generate = _generate(client, user_token)
        listing = client.get("/api/v1/admin/premium/codes", headers=auth_header(user_token))

        assert generate.status_code == listing.status_code == 403
        assert generate.json()["detail"] == "Admin access required"

    def test_generate_validates_duration(self, client, admin_token):
        response = _generate(client, admin_token, hours=0)
        assert response.status_code == 400


class TestPremiumRoutes:
    def test_status_for_new_user(self, client, user_token):
        response = client.get("/api/v1/premium/status", headers=auth_header(user_token))

        assert response.status_code == 200
        assert response.json() == {"isPremium": False, "expiresAt": None}

    def test_unknown_code(self, client, user_token):
        response = client.post(
            "/api/v1/premium/redeem", json={"code": "NOPE2345"}, headers=auth_header(user_token)
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid code"

    def test_features_gated_until_redeemed(self, client, admin_token, user_token):
        gated = client.get("/api/v1/premium/features", headers=auth_header(user_token))
        assert gated.status_code == 403
        assert gated.json()["detail"] == "Premium access required"

        code = _generate(client, admin_token).json()["code"]["code"]
        redeemed = client.post(
            "/api/v1/premium/redeem", json={"code": code.lower()}, headers=auth_header(user_token)
        )
        assert redeemed.status_code == 200

        features = client.get("/api/v1/premium/features", headers=auth_header(user_token))
        assert features.status_code == 200
        toggles = features.json()["premiumSettings"]
        assert toggles["advanced_search_tools"] is True
        assert toggles["instant_results"] is True

        status = client.get("/api/v1/premium/status", headers=auth_header(user_token)).json()
        assert status["isPremium"] is True
        assert status["expiresAt"] is not None

    def test_feature_changes_gated_until_redeemed(self, client, admin_token, user_token):
        headers = auth_header(user_token)
        patch = client.patch(
            "/api/v1/premium/features", json={"priorityProxy": True}, headers=headers
        )
        toggle = client.post(
            "/api/v1/premium/features/toggle/priorityProxy",
            json={"enabled": True},
            headers=headers,
        )
        assert patch.status_code == toggle.status_code == 403

        code = _generate(client, admin_token).json()["code"]["code"]
        client.post("/api/v1/premium/redeem", json={"code": code}, headers=headers)

        patched = client.patch(
            "/api/v1/premium/features",
            json={"priorityProxy": True, "instantResults": False},
            headers=headers,
        )
        assert patched.status_code == 200
        assert patched.json()["message"] == "Premium settings updated successfully"
        assert patched.json()["premiumSettings"]["priority_proxy"] is True
        assert patched.json()["premiumSettings"]["instant_results"] is False

        toggled = client.post(
            "/api/v1/premium/features/toggle/extendedHistory",
            json={"enabled": True},
            headers=headers,
        )
        assert toggled.status_code == 200
        assert toggled.json() == {
            "message": "Premium feature extendedHistory enabled successfully",
            "feature": {"name": "extended_history", "enabled": True},
        }
        current = client.get("/api/v1/settings", headers=headers).json()["settings"]
        assert current["extendedHistory"] is True
        assert current["priorityProxy"] is True

    def test_feature_toggle_input_checked(self, client, admin_token, user_token):
        headers = auth_header(user_token)
        code = _generate(client, admin_token).json()["code"]["code"]
        client.post("/api/v1/premium/redeem", json={"code": code}, headers=headers)

        not_bool = client.post(
            "/api/v1/premium/features/toggle/instantResults",
            json={"enabled": "yes"},
            headers=headers,
        )
        assert not_bool.status_code == 400
        assert not_bool.json()["detail"] == "Enabled status must be a boolean"

        unknown = client.post(
            "/api/v1/premium/features/toggle/theme", json={"enabled": True}, headers=headers
        )
        assert unknown.status_code == 404
        assert unknown.json()["detail"] == "Unknown premium feature"

        regular = client.patch(
            "/api/v1/premium/features", json={"theme": "light"}, headers=headers
        )
        assert regular.status_code == 400

        disabled = client.post(
            "/api/v1/premium/features/toggle/instant_results",
            json={"enabled": False},
            headers=headers,
        )
        assert disabled.json()["message"] == "Premium feature instant_results disabled successfully"

    def test_redeem_requires_session(self, client):
        response = client.post("/api/v1/premium/redeem", json={"code": "ANY23456"})
        assert response.status_code == 401


class TestSettingsRoutes:
    def test_read_and_update(self, client, user_token):
        current = client.get("/api/v1/settings", headers=auth_header(user_token))
        assert current.status_code == 200
        assert current.json()["settings"]["theme"] == "dark"

        updated = client.patch(
            "/api/v1/settings",
            json={"theme": "light", "saveHistory": False},
            headers=auth_header(user_token),
        )
        assert updated.status_code == 200
        assert updated.json()["settings"]["theme"] == "light"
        assert updated.json()["settings"]["saveHistory"] is False
        assert updated.json()["settings"]["fontSize"] == "medium"

    def test_premium_toggle_needs_premium(self, client, user_token):
        response = client.patch(
            "/api/v1/settings", json={"priorityProxy": True}, headers=auth_header(user_token)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Premium access required"

    def test_unknown_setting_rejected(self, client, user_token):
        response = client.patch(
            "/api/v1/settings", json={"wallpaper": "stars"}, headers=auth_header(user_token)
        )
        assert response.status_code == 400


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["service"] == settings.PROJECT_NAME
    assert "timestamp" in body
