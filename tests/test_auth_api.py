def register(client, **extra):
    payload = {"name": "Bina Shrestha", "email": "bina@example.com", "password": "secret123"}
    payload.update(extra)
    return client.post("/api/auth/register", json=payload)


def test_register_login_me(client):
    resp = register(client)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["user"]["role"] == "patient"
    assert "passwordHash" not in data["user"]

    login = client.post("/api/auth/login", json={"email": "BINA@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["data"]["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["user"]["email"] == "bina@example.com"
    assert me.json()["data"]["user"]["lastLogin"] is not None


def test_token_cookie_is_accepted(client):
    token = register(client).json()["data"]["token"]
    client.cookies.set("token", token)
    try:
        assert client.get("/api/auth/me").status_code == 200
    finally:
        client.cookies.clear()


def test_duplicate_registration(client):
    register(client)
    resp = register(client, email="Bina@Example.com")
    assert resp.status_code == 400
    assert resp.json()["message"] == "User already exists with this email"


def test_doctor_registration_validates_availability(client):
    resp = register(
        client,
        role="doctor",
        licenseNumber="NMC-22",
        specialization="Dermatology",
        availability={"monday": {"start": "17:00", "end": "09:00", "available": True}},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid availability schedule"
    assert resp.json()["data"]["errors"][0]["field"] == "availability.monday"


def test_admin_role_cannot_self_register(client):
    assert register(client, role="admin").status_code == 400


def test_bad_credentials(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "bina@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


def test_garbage_token(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_profile_and_password(client):
    token = register(client).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    resp = client.put("/api/auth/profile", json={"phone": "+977 9800000000", "gender": "female"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["phone"] == "+9779800000000"

    bad = client.put("/api/auth/change-password", json={"currentPassword": "wrong", "newPassword": "another1"}, headers=headers)
    assert bad.status_code == 401
    ok = client.put("/api/auth/change-password", json={"currentPassword": "secret123", "newPassword": "another1"}, headers=headers)
    assert ok.status_code == 200
    assert client.post("/api/auth/login", json={"email": "bina@example.com", "password": "another1"}).status_code == 200


def test_deactivated_user_is_locked_out(client, actors):
    ids, headers = actors
    assert client.put(f"/api/users/{ids['patient']}/deactivate", headers=headers["admin"]).status_code == 200
    assert client.get("/api/auth/me", headers=headers["patient"]).status_code == 403
    resp = client.post("/api/auth/login", json={"email": "patient@example.com", "password": "secret123"})
    assert resp.status_code == 403


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["database"]["ok"] is True
