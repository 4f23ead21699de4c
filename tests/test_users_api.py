"""HTTP tests for the user endpoints: envelope, access policy and error mapping."""

import base64
import unittest
from unittest.mock import patch

from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from account_service.api.deps import policy_path
from account_service.core.access_policy import AccessDecision, check_access
from account_service.core.database import get_db
from account_service.main import app
from account_service.models import UserRole
from account_service.services.accounts import AccountService
from tests.support import make_service, make_session_factory, override_get_db

ADMIN = ("root", "rootpass")
USER = ("alice", "secret1")


class ApiTestCase(unittest.TestCase):
    """TestClient against a fresh database seeded with one admin and one user."""

    def setUp(self) -> None:
        self.factory = make_session_factory()
        app.dependency_overrides[get_db] = override_get_db(self.factory)
        self.client = TestClient(app)
        with self.factory() as session:
            service = make_service(session)
            service.register(ADMIN[0], ADMIN[1], UserRole.ADMIN)
            self.user_id = service.register(USER[0], USER[1]).value.id

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def assertEnvelope(self, response, status_code: int, success: bool) -> dict:
        self.assertEqual(response.status_code, status_code, response.text)
        body = response.json()
        self.assertEqual(body["success"], success)
        self.assertEqual(body["code"], status_code)
        self.assertIn("message", body)
        self.assertIn("timestamp", body)
        return body


class TestLoginAndRegister(ApiTestCase):
    """Public endpoints."""

    def test_login_returns_user_without_password(self) -> None:
        r = self.client.post("/api/users/login", json={"username": "alice", "password": "secret1"})
        body = self.assertEnvelope(r, 200, True)
        self.assertEqual(body["data"]["username"], "alice")
        self.assertEqual(body["data"]["role"], "USER")
        self.assertNotIn("password", body["data"])
        self.assertNotIn("password_hash", body["data"])

    def test_wrong_password_and_unknown_user_look_the_same(self) -> None:
        wrong = self.client.post("/api/users/login", json={"username": "alice", "password": "nope"})
        unknown = self.client.post("/api/users/login", json={"username": "ghost", "password": "nope"})
        a = self.assertEnvelope(wrong, 401, False)
        b = self.assertEnvelope(unknown, 401, False)
        self.assertEqual(a["message"], b["message"])
        self.assertEqual(a["data"], b["data"])

    def test_register_defaults_role_to_user(self) -> None:
        r = self.client.post("/api/users/register", json={"username": "bob", "password": "secret1"})
        body = self.assertEnvelope(r, 200, True)
        self.assertEqual(body["data"]["role"], "USER")
        self.assertIn("id", body["data"])
        self.assertIn("created_at", body["data"])
        self.assertNotIn("password_hash", body["data"])

    def test_register_then_login(self) -> None:
        self.client.post("/api/users/register", json={"username": "bob", "password": "secret1"})
        r = self.client.post("/api/users/login", json={"username": "bob", "password": "secret1"})
        self.assertEnvelope(r, 200, True)

    def test_duplicate_register_is_conflict(self) -> None:
        r = self.client.post(
            "/api/users/register",
            json={"username": "alice", "password": "another", "role": "ADMIN"},
        )
        body = self.assertEnvelope(r, 409, False)
        self.assertEqual(body["message"], "Username already exists")

    def test_register_validation_error_has_field_detail(self) -> None:
        r = self.client.post("/api/users/register", json={"username": "ab", "password": "secret1"})
        body = self.assertEnvelope(r, 400, False)
        self.assertIn("username", [e["field"] for e in body["data"]])

    def test_register_unknown_role_rejected(self) -> None:
        r = self.client.post(
            "/api/users/register",
            json={"username": "bob", "password": "secret1", "role": "ROOT"},
        )
        self.assertEnvelope(r, 400, False)

    def test_check_username_is_public(self) -> None:
        r = self.client.get("/api/users/check-username", params={"username": "alice"})
        self.assertIs(self.assertEnvelope(r, 200, True)["data"], True)
        r = self.client.get("/api/users/check-username", params={"username": "nobody"})
        self.assertIs(self.assertEnvelope(r, 200, True)["data"], False)


class TestAccessPolicy(ApiTestCase):
    """Admin endpoints need ADMIN credentials; checks happen before the handler."""

    def test_anonymous_gets_401_with_basic_challenge(self) -> None:
        r = self.client.get("/api/users")
        self.assertEnvelope(r, 401, False)
        self.assertEqual(r.headers["www-authenticate"], "Basic")

    def test_bad_credentials_get_401(self) -> None:
        r = self.client.get("/api/users", auth=("root", "wrong"))
        self.assertEnvelope(r, 401, False)

    def test_user_role_gets_403(self) -> None:
        for path in ("/api/users", "/api/users/statistics", "/api/users/search", "/api/users/role/USER"):
            with self.subTest(path=path):
                self.assertEnvelope(self.client.get(path, auth=USER), 403, False)

    def test_forbidden_request_never_reaches_service(self) -> None:
        with patch.object(AccountService, "delete_user") as delete:
            r = self.client.delete(f"/api/users/{self.user_id}", auth=USER)
        self.assertEnvelope(r, 403, False)
        delete.assert_not_called()

    def test_health_is_public(self) -> None:
        body = self.assertEnvelope(self.client.get("/health"), 200, True)
        self.assertEqual(body["data"]["status"], "ok")
        self.assertEqual(body["data"]["database"], "connected")


class TestBasicCredentials(ApiTestCase):
    """Authorization headers are decoded as UTF-8; undecodable ones count as anonymous."""

    def test_admin_with_non_ascii_password_reaches_admin_endpoint(self) -> None:
        with self.factory() as session:
            make_service(session).register("zoe", "pässwort1", UserRole.ADMIN)
        login = self.client.post("/api/users/login", json={"username": "zoe", "password": "pässwort1"})
        self.assertEnvelope(login, 200, True)
        token = base64.b64encode("zoe:pässwort1".encode("utf-8")).decode("ascii")
        r = self.client.get("/api/users", headers={"Authorization": f"Basic {token}"})
        body = self.assertEnvelope(r, 200, True)
        self.assertIn("zoe", [u["username"] for u in body["data"]])

    def test_garbage_basic_header_on_public_route_is_ignored(self) -> None:
        r = self.client.post(
            "/api/users/login",
            json={"username": "alice", "password": "secret1"},
            headers={"Authorization": "Basic !!!notbase64"},
        )
        self.assertEnvelope(r, 200, True)
        r = self.client.get(
            "/api/users/check-username",
            params={"username": "alice"},
            headers={"Authorization": "Basic !!!notbase64"},
        )
        self.assertEnvelope(r, 200, True)

    def test_garbage_basic_header_on_admin_route_is_401(self) -> None:
        r = self.client.get("/api/users", headers={"Authorization": "Basic !!!notbase64"})
        self.assertEnvelope(r, 401, False)

    def test_credentials_without_colon_are_anonymous(self) -> None:
        token = base64.b64encode(b"rootrootpass").decode("ascii")
        r = self.client.get("/api/users", headers={"Authorization": f"Basic {token}"})
        self.assertEnvelope(r, 401, False)

    def test_non_utf8_credentials_are_anonymous(self) -> None:
        token = base64.b64encode(b"root:\xff\xfe").decode("ascii")
        r = self.client.post(
            "/api/users/login",
            json={"username": "alice", "password": "secret1"},
            headers={"Authorization": f"Basic {token}"},
        )
        self.assertEnvelope(r, 200, True)


class TestPolicyPath(unittest.TestCase):
    """The access policy sees paths relative to the application mount."""

    def _request(self, path: str, root_path: str = "") -> Request:
        return Request(
            {
                "type": "http",
                "method": "GET",
                "path": path,
                "root_path": root_path,
                "query_string": b"",
                "headers": [],
            }
        )

    def test_plain_path(self) -> None:
        self.assertEqual(policy_path(self._request("/api/users/login")), "/api/users/login")

    def test_root_path_prefix_is_stripped(self) -> None:
        request = self._request("/prefix/api/users/login", root_path="/prefix")
        self.assertEqual(policy_path(request), "/api/users/login")
        self.assertIs(check_access(policy_path(request), None), AccessDecision.ALLOW)

    def test_path_already_relative_to_root_path(self) -> None:
        request = self._request("/api/users/login", root_path="/prefix")
        self.assertEqual(policy_path(request), "/api/users/login")

    def test_similar_prefix_not_stripped(self) -> None:
        request = self._request("/prefixed/api/users", root_path="/prefix")
        self.assertEqual(policy_path(request), "/prefixed/api/users")


class TestAdminEndpoints(ApiTestCase):
    """List, lookup, update, delete, role filter, search and statistics."""

    def test_list_newest_first(self) -> None:
        body = self.assertEnvelope(self.client.get("/api/users", auth=ADMIN), 200, True)
        self.assertEqual([u["username"] for u in body["data"]], ["alice", "root"])
        for user in body["data"]:
            self.assertNotIn("password_hash", user)

    def test_get_by_id_and_missing(self) -> None:
        body = self.assertEnvelope(self.client.get(f"/api/users/{self.user_id}", auth=ADMIN), 200, True)
        self.assertEqual(body["data"]["username"], "alice")
        self.assertEnvelope(self.client.get("/api/users/999", auth=ADMIN), 404, False)

    def test_partial_update_role(self) -> None:
        r = self.client.put(f"/api/users/{self.user_id}", json={"role": "ADMIN"}, auth=ADMIN)
        body = self.assertEnvelope(r, 200, True)
        self.assertEqual(body["data"]["role"], "ADMIN")
        self.assertEqual(body["data"]["username"], "alice")
        login = self.client.post("/api/users/login", json={"username": "alice", "password": "secret1"})
        self.assertEnvelope(login, 200, True)

    def test_update_rename_conflict_and_missing(self) -> None:
        r = self.client.put(f"/api/users/{self.user_id}", json={"username": "root"}, auth=ADMIN)
        self.assertEqual(self.assertEnvelope(r, 409, False)["message"], "Username is already taken")
        r = self.client.put("/api/users/999", json={"role": "USER"}, auth=ADMIN)
        self.assertEnvelope(r, 404, False)

    def test_update_rejects_short_username(self) -> None:
        r = self.client.put(f"/api/users/{self.user_id}", json={"username": "ab"}, auth=ADMIN)
        self.assertEnvelope(r, 400, False)

    def test_delete_then_delete_again(self) -> None:
        self.assertEnvelope(self.client.delete(f"/api/users/{self.user_id}", auth=ADMIN), 200, True)
        self.assertEnvelope(self.client.delete(f"/api/users/{self.user_id}", auth=ADMIN), 404, False)

    def test_role_filter(self) -> None:
        body = self.assertEnvelope(self.client.get("/api/users/role/ADMIN", auth=ADMIN), 200, True)
        self.assertEqual([u["username"] for u in body["data"]], ["root"])
        self.assertEnvelope(self.client.get("/api/users/role/OWNER", auth=ADMIN), 400, False)

    def test_search(self) -> None:
        body = self.assertEnvelope(
            self.client.get("/api/users/search", params={"keyword": "lic"}, auth=ADMIN), 200, True
        )
        self.assertEqual([u["username"] for u in body["data"]], ["alice"])
        everyone = self.assertEnvelope(self.client.get("/api/users/search", auth=ADMIN), 200, True)
        listed = self.assertEnvelope(self.client.get("/api/users", auth=ADMIN), 200, True)
        self.assertEqual([u["id"] for u in everyone["data"]], [u["id"] for u in listed["data"]])

    def test_statistics(self) -> None:
        body = self.assertEnvelope(self.client.get("/api/users/statistics", auth=ADMIN), 200, True)
        self.assertEqual(body["data"], {"total": 2, "admins": 1, "users": 1})


class TestInternalErrors(ApiTestCase):
    """Storage failures are reported generically."""

    def test_database_error_is_generic_500(self) -> None:
        failure = OperationalError("SELECT users", {}, Exception("connection refused"))
        with patch.object(AccountService, "get_all", side_effect=failure):
            r = self.client.get("/api/users", auth=ADMIN)
        body = self.assertEnvelope(r, 500, False)
        self.assertEqual(body["message"], "Internal server error")
        self.assertNotIn("connection refused", r.text)
