PASSWORD = "correct horse battery"


def register(client, username="alice", email="a@x.com", password=PASSWORD):
    return client.post(
        "/api/v1/auth/register",
        json={
            "username": username,
            "email": email,
            "password": password,
            "confirmPassword": password,
        },
    )


def login(client, username="alice", password=PASSWORD):
    return client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
