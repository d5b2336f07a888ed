import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from outfits.adapter import SqlAuthAdapter
from outfits.app import create_app
from outfits.config import Settings
from outfits.db import Database
from outfits.queue import InMemoryCleanupQueue
from outfits.storage import InMemoryStorageClient

ADAPTER_SECRET = "test-adapter-secret"


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.db = Database("sqlite+pysqlite:///:memory:")
        self.storage = InMemoryStorageClient()
        self.queue = InMemoryCleanupQueue()
        settings = Settings(use_in_memory_backends=True, adapter_secret=ADAPTER_SECRET)
        self.client = TestClient(
            create_app(
                settings,
                database=self.db,
                storage=self.storage,
                cleanup_queue=self.queue,
            )
        )

        self.adapter = SqlAuthAdapter(self.db)
        self.user = self.adapter.create_user({"username": "ada", "email": "ada@example.com"})
        self.other = self.adapter.create_user({"username": "bob", "email": "bob@example.com"})
        expires = datetime.now(timezone.utc) + timedelta(days=1)
        self.adapter.create_session(
            {"session_token": "ada-token", "user_id": self.user.id, "expires": expires}
        )
        self.adapter.create_session(
            {"session_token": "bob-token", "user_id": self.other.id, "expires": expires}
        )
        self.ada = {"Authorization": "Bearer ada-token"}
        self.bob = {"Authorization": "Bearer bob-token"}

    def tearDown(self):
        self.db.dispose()

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_protected_procedures_require_session(self):
        calls = [
            ("POST", "/api/post/create_post", {"type": "OUTFIT"}),
            ("POST", "/api/post/delete_post", {"id": "anything"}),
            ("GET", "/api/user/me", None),
            ("POST", "/api/user/edit_profile", {"name": "Mallory"}),
            ("POST", "/api/user/set_image", None),
            ("POST", "/api/user/delete_image", None),
        ]
        for method, path, body in calls:
            response = self.client.request(method, path, json=body)
            self.assertEqual(response.status_code, 401, path)
            self.assertEqual(response.json()["code"], "UNAUTHORIZED")

        user = self.adapter.get_user(self.user.id)
        self.assertFalse(user.onboarded)
        self.assertIsNone(user.name)
        self.assertEqual(user.image_count, 0)
        self.assertEqual(self.queue.items, [])

    def test_unknown_and_expired_sessions_are_rejected(self):
        self.adapter.create_session(
            {
                "session_token": "stale",
                "user_id": self.user.id,
                "expires": datetime.now(timezone.utc) - timedelta(minutes=1),
            }
        )
        for token in ("stale", "nope"):
            response = self.client.get(
                "/api/user/me", headers={"Authorization": f"Bearer {token}"}
            )
            self.assertEqual(response.status_code, 401)

    def test_session_cookie(self):
        response = self.client.get(
            "/api/user/me", headers={"Cookie": "next-auth.session-token=ada-token"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["username"], "ada")

    def test_create_list_and_delete_post(self):
        created = self.client.post(
            "/api/post/create_post", json={"type": "HOODIE"}, headers=self.ada
        )
        self.assertEqual(created.status_code, 200)
        payload = created.json()
        post = payload["post"]
        self.assertEqual(post["type"], "HOODIE")
        self.assertIn(f"{self.user.id}/{post['image']}.png", payload["upload_url"])

        profile = self.client.get("/api/user/get_profile", params={"username": "ada"}).json()
        self.assertEqual(profile["hoodie_post_count"], 1)
        self.assertEqual(profile["image_count"], 1)

        listed = self.client.get(
            "/api/post/get_posts_all_types", params={"id": self.user.id}
        ).json()
        self.assertEqual([p["id"] for p in listed], [post["id"]])
        self.assertEqual(set(listed[0]), {"id", "type", "image", "created_at"})

        denied = self.client.post(
            "/api/post/delete_post", json={"id": post["id"]}, headers=self.bob
        )
        self.assertEqual(denied.status_code, 404)
        self.assertEqual(denied.json()["detail"], "Invalid post!")

        deleted = self.client.post(
            "/api/post/delete_post", json={"id": post["id"]}, headers=self.ada
        )
        self.assertEqual(deleted.status_code, 200)
        self.assertIs(deleted.json(), True)

        profile = self.client.get("/api/user/get_profile", params={"username": "ada"}).json()
        self.assertEqual(profile["hoodie_post_count"], 0)
        self.assertEqual(profile["image_count"], 0)
        listed = self.client.get(
            "/api/post/get_posts_all_types", params={"id": self.user.id}
        ).json()
        self.assertEqual(listed, [])
        self.assertEqual(len(self.queue.items), 1)

    def test_create_post_rejects_unknown_type(self):
        response = self.client.post(
            "/api/post/create_post", json={"type": "HAT"}, headers=self.ada
        )
        self.assertEqual(response.status_code, 422)

    def test_create_post_signing_failure(self):
        self.storage.fail_signing = True
        response = self.client.post(
            "/api/post/create_post", json={"type": "SHOES"}, headers=self.ada
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"detail": "Invalid image!", "code": "BAD_REQUEST"})

    def test_profiles(self):
        exists = self.client.get("/api/user/profile_exists", params={"username": "ada"})
        self.assertIs(exists.json(), True)
        missing = self.client.get(
            "/api/user/profile_exists", params={"username": "nonexistent"}
        )
        self.assertIs(missing.json(), False)

        not_found = self.client.get(
            "/api/user/get_profile", params={"username": "nonexistent"}
        )
        self.assertEqual(not_found.status_code, 404)
        self.assertEqual(not_found.json()["code"], "NOT_FOUND")

    def test_me_onboards(self):
        first = self.client.get("/api/user/me", headers=self.ada).json()
        self.assertFalse(first["onboarded"])
        second = self.client.get("/api/user/me", headers=self.ada).json()
        self.assertTrue(second["onboarded"])

    def test_edit_profile(self):
        for username in ("ab", "login", "api/x"):
            response = self.client.post(
                "/api/user/edit_profile", json={"username": username}, headers=self.ada
            )
            self.assertEqual(response.status_code, 400, username)
            self.assertEqual(response.json()["detail"], "Invalid username")

        conflict = self.client.post(
            "/api/user/edit_profile", json={"username": "bob"}, headers=self.ada
        )
        self.assertEqual(conflict.status_code, 409)

        ok = self.client.post(
            "/api/user/edit_profile",
            json={"username": "lovelace", "name": "Ada"},
            headers=self.ada,
        )
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json(), {"username": "lovelace"})

    def test_set_and_delete_image(self):
        response = self.client.post("/api/user/set_image", headers=self.ada)
        self.assertEqual(response.status_code, 200)
        image = self.adapter.get_user(self.user.id).image
        self.assertIn(f"{self.user.id}/{image}.png", response.json()["upload_url"])

        response = self.client.post("/api/user/delete_image", headers=self.ada)
        self.assertIs(response.json(), True)
        self.assertIsNone(self.adapter.get_user(self.user.id).image)
        self.assertEqual(
            [task.key for task in self.queue.items], [f"{self.user.id}/{image}.png"]
        )


class AdapterApiTests(unittest.TestCase):
    def setUp(self):
        self.db = Database("sqlite+pysqlite:///:memory:")
        settings = Settings(use_in_memory_backends=True, adapter_secret=ADAPTER_SECRET)
        self.client = TestClient(
            create_app(
                settings,
                database=self.db,
                storage=InMemoryStorageClient(),
                cleanup_queue=InMemoryCleanupQueue(),
            )
        )
        self.headers = {"X-Adapter-Secret": ADAPTER_SECRET}

    def tearDown(self):
        self.db.dispose()

    def test_requires_secret(self):
        payload = {"username": "eve", "email": "eve@example.com"}
        response = self.client.post("/api/auth/create_user", json=payload)
        self.assertEqual(response.status_code, 401)
        response = self.client.post(
            "/api/auth/create_user",
            json=payload,
            headers={"X-Adapter-Secret": "wrong"},
        )
        self.assertEqual(response.status_code, 401)

    def test_sign_in_flow(self):
        user = self.client.post(
            "/api/auth/create_user",
            json={"username": "eve", "email": "eve@example.com"},
            headers=self.headers,
        ).json()
        self.assertFalse(user["onboarded"])

        linked = self.client.post(
            "/api/auth/link_account",
            json={
                "user_id": user["id"],
                "type": "oauth",
                "provider": "discord",
                "provider_account_id": "99",
            },
            headers=self.headers,
        )
        self.assertEqual(linked.status_code, 200)
        by_account = self.client.post(
            "/api/auth/get_user_by_account",
            json={"provider": "discord", "provider_account_id": "99"},
            headers=self.headers,
        ).json()
        self.assertEqual(by_account["id"], user["id"])

        expires = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
        self.client.post(
            "/api/auth/create_session",
            json={"session_token": "s1", "user_id": user["id"], "expires": expires},
            headers=self.headers,
        )
        found = self.client.post(
            "/api/auth/get_session_and_user",
            json={"session_token": "s1"},
            headers=self.headers,
        ).json()
        self.assertEqual(found["user"]["username"], "eve")

        me = self.client.get("/api/user/me", headers={"Authorization": "Bearer s1"})
        self.assertEqual(me.status_code, 200)

        self.client.post(
            "/api/auth/delete_session", json={"session_token": "s1"}, headers=self.headers
        )
        missing = self.client.post(
            "/api/auth/get_session_and_user",
            json={"session_token": "s1"},
            headers=self.headers,
        )
        self.assertIsNone(missing.json())

    def test_duplicate_user_is_conflict(self):
        payload = {"username": "eve", "email": "eve@example.com"}
        first = self.client.post("/api/auth/create_user", json=payload, headers=self.headers)
        self.assertEqual(first.status_code, 200)
        second = self.client.post(
            "/api/auth/create_user",
            json={"username": "eve2", "email": "eve@example.com"},
            headers=self.headers,
        )
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["code"], "CONFLICT")

    def test_verification_token_via_api(self):
        expires = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
        body = {"identifier": "eve@example.com", "token": "t0k"}
        created = self.client.post(
            "/api/auth/create_verification_token",
            json={**body, "expires": expires},
            headers=self.headers,
        )
        self.assertEqual(created.status_code, 200)

        first = self.client.post(
            "/api/auth/use_verification_token", json=body, headers=self.headers
        )
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["token"], "t0k")

        second = self.client.post(
            "/api/auth/use_verification_token", json=body, headers=self.headers
        )
        self.assertEqual(second.status_code, 404)


if __name__ == "__main__":
    unittest.main()
