"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags catalog      # Test cached catalog + seat map reads
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Session tokens are minted locally with the booking service's SECRET_KEY,
since login is handled outside the booking service:
  SECRET_KEY=... locust -f locustfile.py --host http://localhost:8000
"""

import os
import random
from datetime import datetime, timedelta, timezone

import jwt
from locust import HttpUser, task, between, tag

SECRET_KEY = os.environ.get("SECRET_KEY", "super-secret-key-change-in-production")
CONCERT_ID = int(os.environ.get("LOAD_CONCERT_ID", "1"))
THEATER_ID = None
SEAT_IDS = []


def session_headers(user_id: int, role: int = 0) -> dict:
    token = jwt.encode(
        {
            "sub": str(user_id),
            "role": role,
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        SECRET_KEY,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def load_seat_map(client) -> None:
    global THEATER_ID
    resp = client.get(f"/api/v1/concerts/{CONCERT_ID}/theater", name="/api/v1/concerts/{id}/theater")
    if resp.status_code == 200:
        data = resp.json()
        THEATER_ID = data["theater"]["id"]
        SEAT_IDS[:] = [seat["seat_id"] for seat in data["seats"]]


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users fight over the first row

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no seat is linked twice and statuses agree with links:
      SELECT concert_seat_id, COUNT(*) FROM reservation_seats GROUP BY 1 HAVING COUNT(*) > 1;
      SELECT COUNT(*) FROM concert_seats cs
        LEFT JOIN reservation_seats rs ON rs.concert_seat_id = cs.id
        WHERE (cs.status = 'occupied') <> (rs.reservation_id IS NOT NULL);
    Both should return nothing / 0.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.user_id = random.randint(1, 10_000_000)
        self.headers = session_headers(self.user_id, role=random.choice([0, 1]))
        self.reservation_id = None
        if not SEAT_IDS:
            load_seat_map(self.client)

    @tag("concurrency")
    @task(5)
    def claim_hot_seats(self):
        """Overlapping requests on a small pool of seats."""
        if not SEAT_IDS or THEATER_ID is None or self.reservation_id:
            return

        hot = SEAT_IDS[:10]
        wanted = random.sample(hot, k=random.randint(1, 3))
        with self.client.post(
            f"/api/v1/concerts/{CONCERT_ID}/reservations",
            params={"theater_id": THEATER_ID},
            json=wanted,
            headers=self.headers,
            name="/api/v1/concerts/{id}/reservations",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.reservation_id = resp.json()["reservation_id"]
                resp.success()
            elif resp.status_code in (409, 503):
                resp.success()  # Expected: seats taken, duplicate, or busy
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(2)
    def release(self):
        """Give seats back so the fight continues."""
        if not self.reservation_id:
            return
        with self.client.delete(
            f"/api/v1/reservations/{self.reservation_id}",
            headers=self.headers,
            name="/api/v1/reservations/{id}",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                self.reservation_id = None
                resp.success()
            elif resp.status_code == 503:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class CatalogUser(HttpUser):
    """
    TEST 2: Throughput - catalog cache vs. uncached seat maps

    Run twice:
      1. With Redis: locust -f locustfile.py --tags catalog -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the service, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("catalog", "read")
    @task(10)
    def list_concerts(self):
        self.client.get("/api/v1/concerts/", name="/api/v1/concerts/ [cached]")

    @tag("catalog", "read")
    @task(5)
    def seat_map(self):
        self.client.get(f"/api/v1/concerts/{CONCERT_ID}/theater", name="/api/v1/concerts/{id}/theater")

    @tag("catalog")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = session_headers(random.randint(1, 10_000_000))

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_concert(self):
        with self.client.post(
            "/api/v1/concerts/999999/reservations",
            params={"theater_id": 1},
            json=[1],
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def empty_seat_list(self):
        with self.client.post(
            f"/api/v1/concerts/{CONCERT_ID}/reservations",
            params={"theater_id": 1},
            json=[],
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            f"/api/v1/concerts/{CONCERT_ID}/reservations",
            params={"theater_id": 1},
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            f"/api/v1/concerts/{CONCERT_ID}/reservations",
            params={"theater_id": 1},
            json=[1],
            catch_response=True,
        ) as resp:
            self._expect(resp, [401])

    @tag("edge")
    @task
    def bad_token_concert(self):
        with self.client.get(
            "/api/v1/auth-token",
            params={"concert_id": "abc"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])
