"""Recruiter login and the one-time-code password reset."""
import asyncio
import re

import pytest

from jobboard.errors import ValidationError
from jobboard.services.otp_store import MemoryExpiringStore
from jobboard.services.password_reset import PasswordResetService, generate_code


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return PasswordResetService(MemoryExpiringStore(clock=clock), ttl_seconds=600, max_attempts=3, clock=clock)


def _code_from(email):
    return re.search(r"<strong>(\d{6})</strong>", email["html"]).group(1)


class YieldingStore(MemoryExpiringStore):
    """Hands control back to the event loop before every operation."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value, ttl):
        await asyncio.sleep(0)
        await super().set(key, value, ttl)

    async def delete(self, key):
        await asyncio.sleep(0)
        await super().delete(key)

    async def incr(self, key, ttl):
        await asyncio.sleep(0)
        return await super().incr(key, ttl)


class TestMemoryExpiringStore:

    async def test_entry_expires(self, clock):
        store = MemoryExpiringStore(clock=clock)
        await store.set("k", {"v": 1}, ttl=10)
        assert await store.get("k") == {"v": 1}
        clock.advance(10)
        assert await store.get("k") is None
        assert len(store) == 0

    async def test_returned_value_is_a_copy(self, clock):
        store = MemoryExpiringStore(clock=clock)
        await store.set("k", {"v": 1}, ttl=10)
        (await store.get("k"))["v"] = 2
        assert await store.get("k") == {"v": 1}

    async def test_close_drops_everything(self, clock):
        store = MemoryExpiringStore(clock=clock)
        await store.set("k", {"v": 1}, ttl=10)
        await store.close()
        assert await store.get("k") is None

    async def test_counter_counts_and_expires(self, clock):
        store = MemoryExpiringStore(clock=clock)
        assert [await store.incr("n", ttl=10) for _ in range(3)] == [1, 2, 3]
        clock.advance(10)
        assert await store.incr("n", ttl=10) == 1


class TestPasswordResetService:

    def test_codes_are_six_digits(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6 and code.isdigit()

    async def test_valid_code_is_single_use(self, service):
        code = await service.issue("HR@acme.test")
        await service.verify("hr@acme.test", code)
        with pytest.raises(ValidationError, match="No OTP request found"):
            await service.verify("hr@acme.test", code)

    async def test_no_request(self, service):
        with pytest.raises(ValidationError, match="No OTP request found"):
            await service.verify("hr@acme.test", "123456")

    async def test_expired(self, service, clock):
        code = await service.issue("hr@acme.test")
        clock.advance(601)
        with pytest.raises(ValidationError):
            await service.verify("hr@acme.test", code)

    async def test_wrong_code_then_right_code(self, service):
        code = await service.issue("hr@acme.test")
        wrong = "000000" if code != "000000" else "111111"
        with pytest.raises(ValidationError, match="Invalid OTP"):
            await service.verify("hr@acme.test", wrong)
        await service.verify("hr@acme.test", code)

    async def test_locked_after_max_attempts(self, service):
        code = await service.issue("hr@acme.test")
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(3):
            with pytest.raises(ValidationError, match="Invalid OTP"):
                await service.verify("hr@acme.test", wrong)
        with pytest.raises(ValidationError, match="Too many invalid attempts"):
            await service.verify("hr@acme.test", code)
        # lockout consumed the entry
        with pytest.raises(ValidationError, match="No OTP request found"):
            await service.verify("hr@acme.test", code)

    async def test_concurrent_wrong_guesses_share_the_limit(self, clock):
        service = PasswordResetService(YieldingStore(clock=clock), ttl_seconds=600, max_attempts=3, clock=clock)
        code = await service.issue("hr@acme.test")
        wrong = "000000" if code != "000000" else "111111"

        results = await asyncio.gather(
            *(service.verify("hr@acme.test", wrong) for _ in range(8)), return_exceptions=True
        )

        messages = [str(r) for r in results]
        assert messages.count("Invalid OTP") == 3
        assert all(m.startswith("Too many invalid attempts") for m in messages if m != "Invalid OTP")
        with pytest.raises(ValidationError):
            await service.verify("hr@acme.test", code)

    async def test_reissue_clears_attempts(self, service):
        code = await service.issue("hr@acme.test")
        wrong = "000000" if code != "000000" else "111111"
        for _ in range(3):
            with pytest.raises(ValidationError, match="Invalid OTP"):
                await service.verify("hr@acme.test", wrong)
        fresh = await service.issue("hr@acme.test")
        await service.verify("hr@acme.test", fresh)

    async def test_reissue_replaces_code(self, service):
        first = await service.issue("hr@acme.test")
        second = await service.issue("hr@acme.test")
        if first != second:
            with pytest.raises(ValidationError):
                await service.verify("hr@acme.test", first)
        await service.verify("hr@acme.test", second)


class TestLogin:

    async def test_login_returns_company_token(self, client, seed):
        response = await client.post("/api/companies/login", json={"email": "hr@acme.test", "password": "acme-pass"})
        assert response.status_code == 200
        body = response.json()
        assert body["company"]["id"] == seed.acme_id
        assert "password" not in body["company"]

        listing = await client.get("/api/applications/company", headers={"token": body["token"]})
        assert listing.status_code == 200

    async def test_wrong_password(self, client, seed):
        response = await client.post("/api/companies/login", json={"email": "hr@acme.test", "password": "nope"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid email or password"}


class TestResetFlow:

    async def test_full_reset_then_login(self, client, seed, notifier):
        response = await client.post("/api/auth/forgot-password", json={"email": "hr@acme.test"})
        assert response.status_code == 200
        assert notifier.sent[0]["subject"] == "Password Reset OTP"
        code = _code_from(notifier.sent[0])

        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "hr@acme.test", "otp": code, "newPassword": "fresh-pass"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successful"

        old = await client.post("/api/companies/login", json={"email": "hr@acme.test", "password": "acme-pass"})
        new = await client.post("/api/companies/login", json={"email": "hr@acme.test", "password": "fresh-pass"})
        assert old.status_code == 400
        assert new.status_code == 200

    async def test_unknown_email(self, client, seed, notifier):
        response = await client.post("/api/auth/forgot-password", json={"email": "ghost@nowhere.test"})
        assert response.status_code == 404
        assert response.json()["message"] == "No recruiter account found with this email"
        assert notifier.sent == []

    async def test_email_failure_fails_request(self, client, seed, notifier):
        notifier.fail = True
        response = await client.post("/api/auth/forgot-password", json={"email": "hr@acme.test"})
        assert response.status_code == 500
        assert response.json()["message"] == "Error sending OTP"

    async def test_short_password_rejected_without_consuming_code(self, client, seed, notifier):
        await client.post("/api/auth/forgot-password", json={"email": "hr@acme.test"})
        code = _code_from(notifier.sent[0])

        short = await client.post(
            "/api/auth/reset-password", json={"email": "hr@acme.test", "otp": code, "newPassword": "abc"}
        )
        assert short.status_code == 400
        assert short.json()["message"] == "Password must be at least 6 characters"

        ok = await client.post(
            "/api/auth/reset-password", json={"email": "hr@acme.test", "otp": code, "newPassword": "long-enough"}
        )
        assert ok.status_code == 200

    async def test_wrong_code(self, client, seed, notifier):
        await client.post("/api/auth/forgot-password", json={"email": "hr@acme.test"})
        code = _code_from(notifier.sent[0])
        wrong = "000000" if code != "000000" else "111111"

        response = await client.post(
            "/api/auth/reset-password", json={"email": "hr@acme.test", "otp": wrong, "newPassword": "long-enough"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid OTP"
