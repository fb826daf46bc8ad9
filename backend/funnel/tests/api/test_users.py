def test_signup_login_and_cookie_auth(client):
    signup = client.post(
        "/api/users/signup",
        json={"email": "new@example.com", "password": "averysecret1", "full_name": "New User"},
    )
    assert signup.status_code == 200

    login = client.post(
        "/api/login/access-token",
        data={"username": "new@example.com", "password": "averysecret1"},
    )
    assert login.status_code == 200
    assert login.json()["token_type"] == "bearer"
    assert "auth-token" in login.cookies

    # the client now carries the cookie; no Authorization header needed
    me = client.get("/api/users/me")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "new@example.com"


def test_duplicate_signup_is_rejected(client, user):
    response = client.post(
        "/api/users/signup",
        json={"email": "owner@example.com", "password": "averysecret1"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_wrong_password_is_rejected(client, user):
    response = client.post(
        "/api/login/access-token",
        data={"username": "owner@example.com", "password": "wrong-password"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Incorrect email or password"}


def test_invalid_token_is_rejected(client):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_update_custom_domain(client, auth_headers):
    response = client.patch(
        "/api/users/me/domain",
        json={"custom_domain": "  webinar.example.com "},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["user"]["custom_domain"] == "webinar.example.com"


def test_health_check(client):
    response = client.get("/api/utils/health-check/")

    assert response.status_code == 200
    assert response.json() is True
