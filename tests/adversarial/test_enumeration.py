"""
Adversarial tests for account enumeration through the API.

An attacker probing /login and /verify-otp must not be able to tell an
unknown email from a pending account or a wrong secret: status code and
body are identical in every failure case.
"""

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.adversarial


def register(client: TestClient, email: str) -> dict:
    response = client.post(
        "/register",
        json={"firstName": "Ann", "lastName": "Lee", "email": email, "phoneNumber": "555-0100"},
    )
    return response.json()


class TestLoginEnumeration:
    def test_login_failures_are_identical(self, memory_client: TestClient) -> None:
        active = register(memory_client, "active@x.com")
        memory_client.post("/verify-otp", json={"email": "active@x.com", "otp": active["otp"]})
        memory_client.post("/set-password", json={"userId": active["userId"], "password": "secret1"})

        register(memory_client, "pending@x.com")

        verified = register(memory_client, "verified@x.com")
        memory_client.post("/verify-otp", json={"email": "verified@x.com", "otp": verified["otp"]})

        responses = [
            memory_client.post("/login", json={"email": email, "password": "guess"})
            for email in ("unknown@x.com", "pending@x.com", "verified@x.com", "active@x.com")
        ]

        assert {r.status_code for r in responses} == {401}
        assert {r.text for r in responses} == {'{"detail":"Invalid credentials"}'}

    def test_over_long_password_failures_are_identical(self, memory_client: TestClient) -> None:
        active = register(memory_client, "active@x.com")
        memory_client.post("/verify-otp", json={"email": "active@x.com", "otp": active["otp"]})
        memory_client.post("/set-password", json={"userId": active["userId"], "password": "secret1"})

        long_password = "p" * 100
        responses = [
            memory_client.post("/login", json={"email": email, "password": long_password})
            for email in ("unknown@x.com", "active@x.com")
        ]

        assert {r.status_code for r in responses} == {401}
        assert {r.text for r in responses} == {'{"detail":"Invalid credentials"}'}

    def test_over_long_password_cannot_be_set(self, memory_client: TestClient) -> None:
        pending = register(memory_client, "ann@x.com")
        memory_client.post("/verify-otp", json={"email": "ann@x.com", "otp": pending["otp"]})

        response = memory_client.post(
            "/set-password", json={"userId": pending["userId"], "password": "p" * 100}
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Password must be at most 72 bytes"}


class TestOtpEnumeration:
    def test_verify_failures_are_identical(self, memory_client: TestClient) -> None:
        pending = register(memory_client, "pending@x.com")
        wrong = "100000" if pending["otp"] != "100000" else "100001"

        verified = register(memory_client, "verified@x.com")
        memory_client.post("/verify-otp", json={"email": "verified@x.com", "otp": verified["otp"]})

        responses = [
            memory_client.post("/verify-otp", json={"email": "unknown@x.com", "otp": wrong}),
            memory_client.post("/verify-otp", json={"email": "pending@x.com", "otp": wrong}),
            memory_client.post(
                "/verify-otp", json={"email": "verified@x.com", "otp": verified["otp"]}
            ),
        ]

        assert {r.status_code for r in responses} == {400}
        assert {r.json()["detail"] for r in responses} == {"Invalid OTP"}

    def test_brute_force_wrong_codes_never_verify(self, memory_client: TestClient, memory_app) -> None:
        pending = register(memory_client, "pending@x.com")
        guesses = [str(100000 + i) for i in range(20) if str(100000 + i) != pending["otp"]]

        for guess in guesses:
            response = memory_client.post(
                "/verify-otp", json={"email": "pending@x.com", "otp": guess}
            )
            assert response.status_code == 400

        assert memory_app.state.store.get_by_email("pending@x.com").is_verified is False
