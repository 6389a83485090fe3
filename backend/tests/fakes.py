"""
In-memory stand-in for the hosted backend (auth, REST tables, storage), served through
httpx.MockTransport. Enough PostgREST to exercise the facade and the relay:
equality filters, order, the detail join, Prefer: return=representation, and a light
row-level policy (only moderators see non-approved rows and may update/delete).
"""
import copy
import itertools
import json
import time
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import jwt

BASE_URL = "https://backend.test"
ANON_KEY = "anon-key"
SERVICE_KEY = "service-key"
JWT_SECRET = "fake-backend-secret"

# bearer = service key: bypasses row policies, like the hosted service_role
SERVICE_ROLE = {"id": None, "email": None, "role": "service_role"}

SPOT_DEFAULTS = {
    "address": None,
    "city": "Athens",
    "surface_type": "asphalt",
    "has_shade": False,
    "has_ramp_access": False,
    "is_free": True,
    "is_van_accessible": False,
    "photo_url": None,
    "notes": None,
    "status": "pending",
    "submitted_by": None,
    "approved_by": None,
    "approved_at": None,
}


def _public_user(user: dict) -> dict:
    return {"id": user["id"], "email": user["email"], "role": "authenticated"}


class FakeRemoteService:
    def __init__(self) -> None:
        self.users: dict[str, dict] = {}
        self.tokens: dict[str, str] = {}
        self.tables: dict[str, list[dict]] = {"parking_spots": [], "admins": [], "profiles": []}
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.requests: list[httpx.Request] = []
        self.fail_next: int | None = None
        self._clock = itertools.count(1)

    # --- wiring ---

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport())

    # --- seeding ---

    def add_user(self, email: str, password: str = "secret123", *, moderator: bool = False) -> dict:
        user = {"id": str(uuid.uuid4()), "email": email, "password": password}
        self.users[email] = user
        self.tables["profiles"].append({"id": user["id"], "email": email})
        if moderator:
            self.tables["admins"].append({"id": user["id"], "email": email})
        return user

    def issue_token(self, user: dict, *, expires_in: int = 3600) -> str:
        claims = {"sub": user["id"], "email": user["email"], "exp": int(time.time()) + expires_in}
        token = jwt.encode(claims, JWT_SECRET, algorithm="HS256")
        self.tokens[token] = user["id"]
        return token

    def add_spot(self, **fields) -> dict:
        row = {**SPOT_DEFAULTS, "latitude": 37.9838, "longitude": 23.7275, **fields}
        row.setdefault("id", str(uuid.uuid4()))
        now = self._now()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        self.tables["parking_spots"].append(row)
        return copy.deepcopy(row)

    def spot(self, spot_id: str) -> dict | None:
        for row in self.tables["parking_spots"]:
            if row["id"] == spot_id:
                return row
        return None

    # --- helpers ---

    def _now(self) -> str:
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        return (base + timedelta(seconds=next(self._clock))).isoformat()

    def _caller(self, request: httpx.Request) -> dict | None:
        auth = request.headers.get("authorization", "")
        token = auth[len("Bearer "):] if auth.startswith("Bearer ") else ""
        if token == SERVICE_KEY:
            return SERVICE_ROLE
        user_id = self.tokens.get(token)
        if not user_id:
            return None
        for user in self.users.values():
            if user["id"] == user_id:
                return user
        return None

    def _is_moderator(self, user: dict | None) -> bool:
        if user is SERVICE_ROLE:
            return True
        return bool(user) and any(a["id"] == user["id"] for a in self.tables["admins"])

    def _session(self, user: dict) -> dict:
        token = self.issue_token(user)
        return {"access_token": token, "token_type": "bearer", "expires_in": 3600, "user": _public_user(user)}

    # --- dispatch ---

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_next is not None:
            status, self.fail_next = self.fail_next, None
            return httpx.Response(status, json={"message": "Simulated failure"})
        path = request.url.path
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1/"):])
        if path.startswith("/rest/v1/"):
            return self._rest(request, path[len("/rest/v1/"):])
        if path.startswith("/storage/v1/object/"):
            return self._storage(request, path[len("/storage/v1/object/"):])
        return httpx.Response(404, json={"message": f"No route for {path}"})

    # --- auth ---

    def _auth(self, request: httpx.Request, route: str) -> httpx.Response:
        if route == "signup":
            body = json.loads(request.content)
            if body["email"] in self.users:
                return httpx.Response(422, json={"code": 422, "msg": "User already registered"})
            user = self.add_user(body["email"], body["password"])
            return httpx.Response(200, json=self._session(user))
        if route == "token":
            body = json.loads(request.content)
            user = self.users.get(body.get("email"))
            if request.url.params.get("grant_type") != "password" or not user or user["password"] != body.get("password"):
                return httpx.Response(
                    400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
                )
            return httpx.Response(200, json=self._session(user))
        if route == "logout":
            auth = request.headers.get("authorization", "")
            token = auth[len("Bearer "):]
            if token not in self.tokens:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            del self.tokens[token]
            return httpx.Response(204)
        if route == "user":
            user = self._caller(request)
            if not user:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=_public_user(user))
        return httpx.Response(404, json={"msg": "unknown auth route"})

    # --- rest ---

    def _parse_query(self, request: httpx.Request) -> tuple[str, dict, tuple[str, str] | None]:
        columns, filters, order = "*", {}, None
        for key, value in request.url.params.multi_items():
            if key == "select":
                columns = value
            elif key == "order":
                col, _, direction = value.partition(".")
                order = (col, direction or "asc")
            elif value == "is.null":
                filters[key] = None
            elif value.startswith("eq."):
                filters[key] = value[3:]
        return columns, filters, order

    def _matches(self, row: dict, filters: dict) -> bool:
        for key, expected in filters.items():
            actual = row.get(key)
            if expected is None:
                if actual is not None:
                    return False
            elif isinstance(actual, bool):
                if ("true" if actual else "false") != expected:
                    return False
            elif str(actual) != expected:
                return False
        return True

    def _visible(self, table: str, row: dict, caller: dict | None) -> bool:
        if table != "parking_spots":
            return True
        if row.get("status") == "approved" or self._is_moderator(caller):
            return True
        return bool(caller) and row.get("submitted_by") == caller["id"]

    def _project(self, row: dict, columns: str) -> dict:
        out = copy.deepcopy(row)
        emails = {u["id"]: u["email"] for u in self.users.values()}
        if "approver:" in columns:
            out["approver"] = {"email": emails[row["approved_by"]]} if row.get("approved_by") in emails else None
        if "submitter:" in columns:
            out["submitter"] = {"email": emails[row["submitted_by"]]} if row.get("submitted_by") in emails else None
        if columns == "id":
            out = {"id": row["id"]}
        return out

    def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        if table not in self.tables:
            return httpx.Response(404, json={"message": f'relation "public.{table}" does not exist'})
        caller = self._caller(request)
        columns, filters, order = self._parse_query(request)
        rows = self.tables[table]
        returning = request.headers.get("prefer") == "return=representation"

        if request.method == "GET":
            found = [r for r in rows if self._matches(r, filters) and self._visible(table, r, caller)]
            if order:
                col, direction = order
                found.sort(key=lambda r: r.get(col) or "", reverse=direction == "desc")
            return httpx.Response(200, json=[self._project(r, columns) for r in found])

        if request.method == "POST":
            if not caller:
                return httpx.Response(401, json={"message": "new row violates row-level security policy"})
            body = json.loads(request.content)
            records = body if isinstance(body, list) else [body]
            created = []
            for record in records:
                if table == "parking_spots" and (record.get("latitude") is None or record.get("longitude") is None):
                    return httpx.Response(400, json={"message": 'null value in column "latitude" violates not-null constraint'})
                now = self._now()
                row = {**SPOT_DEFAULTS, **record, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
                rows.append(row)
                created.append(copy.deepcopy(row))
            return httpx.Response(201, json=created if returning else None)

        if request.method == "PATCH":
            patch = json.loads(request.content)
            updated = []
            if self._is_moderator(caller):
                for row in rows:
                    if self._matches(row, filters):
                        row.update(patch)
                        updated.append(copy.deepcopy(row))
            return httpx.Response(200, json=updated if returning else None)

        if request.method == "DELETE":
            if self._is_moderator(caller):
                self.tables[table] = [r for r in rows if not self._matches(r, filters)]
            return httpx.Response(204)

        return httpx.Response(405, json={"message": "method not allowed"})

    # --- storage ---

    def _storage(self, request: httpx.Request, route: str) -> httpx.Response:
        if route.startswith("public/"):
            route = route[len("public/"):]
        bucket, _, path = route.partition("/")
        key = (bucket, path)
        if request.method == "POST":
            if key in self.objects and request.headers.get("x-upsert") != "true":
                return httpx.Response(
                    400, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"}
                )
            self.objects[key] = (request.content, request.headers.get("content-type", "application/octet-stream"))
            return httpx.Response(200, json={"Key": f"{bucket}/{path}"})
        if request.method == "GET":
            if key not in self.objects:
                return httpx.Response(404, json={"statusCode": "404", "error": "not_found", "message": "Object not found"})
            content, content_type = self.objects[key]
            return httpx.Response(200, content=content, headers={"content-type": content_type})
        return httpx.Response(405, json={"message": "method not allowed"})


def nominatim_transport(address: dict | None = None, status: int = 200) -> httpx.MockTransport:
    """Reverse geocoder double: answers every lookup with the given address block."""

    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, text="Service unavailable")
        return httpx.Response(200, json={"address": address or {}})

    return httpx.MockTransport(handler)


def signed_in(client, email: str, password: str):
    """Sign the facade in and fail the test loudly if the fake refused."""
    result = client.sign_in(email, password)
    assert result.error is None, result.error
    return client


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
