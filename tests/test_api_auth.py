import asyncio
from datetime import datetime, timedelta, timezone

from backend.app.security import totp
from backend.app.security.jwt import create_two_factor_token
from backend.app.storage.records import utcnow

from helpers import PASSWORD, auth_header, login, register


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestRegister:
    def test_register_returns_summary(self, client):
        response = register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["user"] == {"id": 1, "username": "alice", "email": "a@x.com"}

    def test_passwords_must_match(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "username": "alice",
                "email": "a@x.com",
                "password": PASSWORD,
                "confirmPassword": PASSWORD + "!",
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Passwords don't match"
        assert response.json()["code"] == "validation_error"

    def test_field_validation_is_400(self, client):
        response = register(client, username="al", email="not-an-email", password="short")

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"username", "email", "password"} <= fields

    def test_unknown_fields_rejected(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "username": "alice",
                "email": "a@x.com",
                "password": PASSWORD,
                "confirmPassword": PASSWORD,
                "role": "admin",
            },
        )
        assert response.status_code == 400

    def test_duplicates_rejected(self, client):
        register(client)

        by_name = register(client, email="b@x.com")
        by_email = register(client, username="bob")

        assert by_name.status_code == 400
        assert by_name.json()["detail"] == "Username already exists"
        assert by_email.status_code == 400
        assert by_email.json()["detail"] == "Email already exists"


class TestLogin:
    def test_login_sets_cookie_and_returns_profile(self, client):
        register(client)

        response = login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["token"]
        assert body["user"]["username"] == "alice"
        assert body["user"]["isPremium"] is False
        assert "hashed_password" not in body["user"]
        assert response.cookies.get("token") == body["token"]
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=strict" in set_cookie

    def test_rejections_are_indistinguishable(self, client):
        register(client)

        unknown = login(client, username="nobody")
        wrong = login(client, password="wrong password")

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()
        assert unknown.json()["detail"] == "Invalid username or password"


class TestTokenTransport:
    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers=auth_header("not.a.jwt"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_cookie_alone_is_enough(self, client):
        register(client)
        login(client)

        response = client.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

    def test_bearer_header_wins_over_cookie(self, client):
        register(client)
        register(client, username="bob", email="b@x.com")
        bob_token = login(client, username="bob").json()["token"]
        login(client)  # cookie now holds alice's session

        as_bob = client.get("/api/v1/auth/me", headers=auth_header(bob_token))
        broken = client.get("/api/v1/auth/me", headers=auth_header("broken"))

        assert as_bob.json()["user"]["username"] == "bob"
        assert broken.status_code == 401

    def test_logout_clears_cookie(self, client):
        register(client)
        login(client)

        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_me_includes_settings(self, client):
        register(client)
        token = login(client).json()["token"]

        user = client.get("/api/v1/auth/me", headers=auth_header(token)).json()["user"]

        assert user["twoFactorEnabled"] is False
        assert user["settings"]["theme"] == "dark"
        assert user["settings"]["advancedSearchTools"] is False


def test_alice_end_to_end(client, store):
    assert register(client).status_code == 201
    token = login(client).json()["token"]

    setup = client.post(
        "/api/v1/auth/2fa/setup", json={"password": PASSWORD}, headers=auth_header(token)
    )
    assert setup.status_code == 200
    enrollment = setup.json()
    assert enrollment["otpauthUrl"].startswith("otpauth://totp/")
    assert enrollment["qrCodeUrl"].startswith("data:image/png;base64,")
    assert len(enrollment["recoveryCodes"]) == 8

    verify = client.post(
        "/api/v1/auth/2fa/verify",
        json={"token": totp.get_current_totp(enrollment["secret"])},
        headers=auth_header(token),
    )
    assert verify.status_code == 200
    assert verify.json()["message"] == "2FA has been enabled successfully"

    client.post("/api/v1/auth/logout")
    client.cookies.clear()

    first_step = login(client)
    assert first_step.status_code == 200
    pending = first_step.json()
    assert pending["requires2FA"] is True
    assert pending["userId"] == 1
    assert pending["username"] == "alice"
    assert pending["pendingToken"]
    assert "token" not in pending
    assert "set-cookie" not in first_step.headers
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get(
        "/api/v1/auth/me", headers=auth_header(pending["pendingToken"])
    ).status_code == 401

    rejected = client.post(
        "/api/v1/auth/2fa/validate",
        json={
            "username": "alice",
            "pendingToken": pending["pendingToken"],
            "recoveryCode": "NOTACODE",
        },
    )
    assert rejected.status_code == 401
    assert rejected.json()["detail"] == "Invalid 2FA token or recovery code"
    assert client.get("/api/v1/auth/me").status_code == 401

    second_step = client.post(
        "/api/v1/auth/2fa/validate",
        json={
            "username": "alice",
            "pendingToken": pending["pendingToken"],
            "token": totp.get_current_totp(enrollment["secret"]),
        },
    )
    assert second_step.status_code == 200
    session = second_step.json()["token"]
    assert client.get("/api/v1/auth/me").json()["user"]["twoFactorEnabled"] is True

    asyncio.run(
        store.create_premium_code("ALICE234", "24 hours", 24, utcnow() + timedelta(days=30))
    )
    before = datetime.now(timezone.utc)
    redeemed = client.post(
        "/api/v1/premium/redeem", json={"code": "ALICE234"}, headers=auth_header(session)
    )
    assert redeemed.status_code == 200
    status = redeemed.json()["premiumStatus"]
    assert status["isPremium"] is True
    assert status["durationHours"] == 24
    expires = _parse(status["expiresAt"])
    assert before + timedelta(hours=24) <= expires <= before + timedelta(hours=24, minutes=1)

    again = client.post(
        "/api/v1/premium/redeem", json={"code": "ALICE234"}, headers=auth_header(session)
    )
    assert again.status_code == 400
    assert again.json()["detail"] == "Code has already been used"


class TestTwoFactorRoutes:
    def _enable(self, client):
        register(client)
        token = login(client).json()["token"]
        secret = client.post(
            "/api/v1/auth/2fa/setup", json={"password": PASSWORD}, headers=auth_header(token)
        ).json()["secret"]
        client.post(
            "/api/v1/auth/2fa/verify",
            json={"token": totp.get_current_totp(secret)},
            headers=auth_header(token),
        )
        return token, secret

    def test_setup_needs_password(self, client):
        register(client)
        token = login(client).json()["token"]

        response = client.post(
            "/api/v1/auth/2fa/setup", json={"password": "nope"}, headers=auth_header(token)
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid password"

    def test_verify_before_setup(self, client):
        register(client)
        token = login(client).json()["token"]

        response = client.post(
            "/api/v1/auth/2fa/verify", json={"token": "123456"}, headers=auth_header(token)
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "2FA setup not initiated"

    def test_validate_requires_a_factor(self, client):
        response = client.post(
            "/api/v1/auth/2fa/validate",
            json={"username": "alice", "pendingToken": "pending"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Username and token or recovery code are required"

    def test_validate_without_2fa(self, client, store):
        register(client)
        user = asyncio.run(store.get_user_by_username("alice"))

        response = client.post(
            "/api/v1/auth/2fa/validate",
            json={
                "username": "alice",
                "pendingToken": create_two_factor_token(user),
                "token": "123456",
            },
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found or 2FA not enabled"

    def test_validate_needs_pending_token_from_login(self, client):
        _, secret = self._enable(client)
        register(client, username="bob", email="b@x.com")
        pending = login(client).json()["pendingToken"]
        code = totp.get_current_totp(secret)

        missing = client.post(
            "/api/v1/auth/2fa/validate", json={"username": "alice", "token": code}
        )
        assert missing.status_code == 400

        forged = client.post(
            "/api/v1/auth/2fa/validate",
            json={"username": "alice", "pendingToken": "forged", "token": code},
        )
        assert forged.status_code == 401
        assert forged.json()["detail"] == "Invalid or expired 2FA session"

        swapped = client.post(
            "/api/v1/auth/2fa/validate",
            json={"username": "bob", "pendingToken": pending, "token": code},
        )
        assert swapped.status_code == 401
        assert swapped.json()["detail"] == "Invalid or expired 2FA session"

        accepted = client.post(
            "/api/v1/auth/2fa/validate",
            json={"username": "alice", "pendingToken": pending, "token": code},
        )
        assert accepted.status_code == 200

    def test_disable_flow(self, client):
        token, secret = self._enable(client)

        missing = client.post(
            "/api/v1/auth/2fa/disable", json={"password": PASSWORD}, headers=auth_header(token)
        )
        assert missing.status_code == 400
        assert missing.json()["detail"] == "2FA token is required"

        disabled = client.post(
            "/api/v1/auth/2fa/disable",
            json={"password": PASSWORD, "token": totp.get_current_totp(secret)},
            headers=auth_header(token),
        )
        assert disabled.status_code == 200
        assert login(client).json()["token"]
