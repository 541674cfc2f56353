"""
api/demo.py

Demo mode: a ``requests`` transport adapter that answers the Healthics API
from a small in-memory sample dataset.

Enabled only through ``HEALTHICS_DEMO_MODE``; the app labels every page
while it is active.  Sample data is never substituted for a failing real
server.  The dataset is read-only apart from the admin status/ban toggles.

Demo accounts (password in brackets):
- admin   [admin]  administrator
- tomy    [demo]   patient with a completed profile
- ahmed   [demo]   patient who never created a profile
"""

from __future__ import annotations

import copy
import json
import logging
import re
import threading
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlsplit

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

_TOKEN_PREFIX = "demo-token-"

_CATEGORIES = [
    {"id": 1, "name": "Lab Results", "description": "Laboratory test results"},
    {"id": 2, "name": "Prescriptions", "description": "Medication prescriptions"},
    {"id": 3, "name": "Doctor Notes", "description": "Clinical visit notes"},
    {"id": 4, "name": "Imaging", "description": "X-rays, MRIs, CT scans, etc."},
]

_SEED: dict[str, Any] = {
    "users": [
        {"id": 1, "username": "admin", "email": "admin@demo.com", "password": "admin",
         "roles": ["ROLE_ADMIN"], "active": True, "banned": False},
        {"id": 5, "username": "tomy", "email": "tomy@demo.com", "password": "demo",
         "roles": ["ROLE_PATIENT"], "active": True, "banned": False},
        {"id": 6, "username": "ahmed", "email": "ahmed@demo.com", "password": "demo",
         "roles": ["ROLE_PATIENT"], "active": True, "banned": False},
    ],
    "profiles": {
        5: {"id": 1, "firstName": "John", "lastName": "Doe", "dateOfBirth": "1990-01-15",
            "phoneNumber": "123-456-7890", "address": "123 Main St, Anytown",
            "medicalHistory": "No significant medical history", "allergies": "Penicillin",
            "medications": "None", "emergencyContact": "Jane Doe, 987-654-3210"},
    },
    "documents": [
        {"id": 11, "userId": 5, "title": "Blood panel", "description": "Annual check-up bloods",
         "categoryId": 1, "doctorName": "Dr. Smith", "hospitalName": "General Hospital",
         "documentDate": "2024-03-02T00:00:00", "fileType": "application/pdf", "fileSize": 182044,
         "uploadDate": "2024-03-05T10:12:00", "lastModifiedDate": "2024-03-05T10:12:00"},
        {"id": 12, "userId": 5, "title": "Chest X-ray", "description": "Follow-up imaging",
         "categoryId": 4, "doctorName": "Dr. Patel", "hospitalName": "City Clinic",
         "documentDate": "2024-04-18T00:00:00", "fileType": "image/png", "fileSize": 53686,
         "uploadDate": "2024-04-19T08:40:00", "lastModifiedDate": "2024-04-19T08:40:00"},
        {"id": 13, "userId": 6, "title": "Antibiotic prescription", "description": "",
         "categoryId": 2, "doctorName": "Dr. Lee", "hospitalName": "City Clinic",
         "documentDate": "2024-05-10T00:00:00", "fileType": "application/pdf", "fileSize": 20480,
         "uploadDate": "2024-05-10T16:05:00", "lastModifiedDate": "2024-05-10T16:05:00"},
    ],
}

Handler = Callable[..., requests.Response]


class DemoAdapter(BaseAdapter):
    def __init__(self, base_url: str):
        super().__init__()
        self._base_path = urlsplit(base_url).path.rstrip("/")
        self._data = copy.deepcopy(_SEED)
        self._lock = threading.Lock()
        self._routes: list[tuple[str, re.Pattern[str], Handler, Optional[str]]] = [
            ("POST", re.compile(r"/auth/login$"), self._login, None),
            ("GET", re.compile(r"/patients/profile$"), self._own_profile, "ROLE_PATIENT"),
            ("GET", re.compile(r"/documents/categories$"), self._categories, ""),
            ("GET", re.compile(r"/documents$"), self._own_documents, "ROLE_PATIENT"),
            ("GET", re.compile(r"/documents/(\d+)$"), self._own_document, "ROLE_PATIENT"),
            ("GET", re.compile(r"/documents/(\d+)/download$"), self._own_download, "ROLE_PATIENT"),
            ("GET", re.compile(r"/admin/patients$"), self._profiles, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/patients/all$"), self._directory, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/patients/with-profiles$"), self._profiles, "ROLE_ADMIN"),
            ("PUT", re.compile(r"/admin/patients/(\d+)/status$"), self._set_status, "ROLE_ADMIN"),
            ("PUT", re.compile(r"/admin/patients/(\d+)/ban$"), self._set_ban, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/patients/(\d+)/documents$"), self._patient_documents, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/documents$"), self._all_documents, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/documents/(\d+)/download$"), self._admin_download, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/statistics$"), self._statistics, "ROLE_ADMIN"),
            ("GET", re.compile(r"/admin/statistics/extended$"), self._extended_statistics, "ROLE_ADMIN"),
        ]

    # -------------------------
    # requests adapter protocol
    # -------------------------
    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        split = urlsplit(request.url)
        path = split.path[len(self._base_path):] if split.path.startswith(self._base_path) else split.path
        query = {k: v[0] for k, v in parse_qs(split.query).items()}

        for method, pattern, handler, role in self._routes:
            match = pattern.match(path)
            if method != request.method or not match:
                continue
            if role is not None:
                user = self._caller(request)
                if user is None:
                    return _respond(request, 401, {"message": "Full authentication is required"})
                if role and role not in user["roles"]:
                    return _respond(request, 403, {"message": "Access is denied"})
                with self._lock:
                    return handler(request, user, query, *match.groups())
            with self._lock:
                return handler(request, query, *match.groups())

        if request.method in ("POST", "PUT", "DELETE"):
            return _respond(request, 403, {"message": "Demo mode is read-only"})
        return _respond(request, 404, {"message": f"No demo route for {path}"})

    def close(self) -> None:
        pass

    # -------------------------
    # Lookups
    # -------------------------
    def _caller(self, request) -> dict | None:
        header = request.headers.get("Authorization", "")
        token = header[len("Bearer "):] if header.startswith("Bearer ") else ""
        if not token.startswith(_TOKEN_PREFIX):
            return None
        user_id = token[len(_TOKEN_PREFIX):]
        return next((u for u in self._data["users"] if str(u["id"]) == user_id), None)

    def _patients(self) -> list[dict]:
        return [u for u in self._data["users"] if "ROLE_PATIENT" in u["roles"]]

    def _patient(self, user_id: str) -> dict | None:
        return next((u for u in self._patients() if str(u["id"]) == user_id), None)

    def _document_view(self, doc: dict) -> dict:
        owner = next(u for u in self._data["users"] if u["id"] == doc["userId"])
        category = next((c for c in _CATEGORIES if c["id"] == doc["categoryId"]), None)
        return {
            **doc,
            "username": owner["username"],
            "categoryName": category["name"] if category else None,
            "downloadUrl": f"{self._base_path}/documents/{doc['id']}/download",
        }

    def _documents_of(self, user_id: int) -> list[dict]:
        return [self._document_view(d) for d in self._data["documents"] if d["userId"] == user_id]

    def _profile_entry(self, user: dict) -> dict:
        profile = self._data["profiles"][user["id"]]
        return {
            **profile,
            "user": {k: user[k] for k in ("id", "username", "email", "active", "banned")},
            "documentCount": len(self._documents_of(user["id"])),
        }

    # -------------------------
    # Handlers
    # -------------------------
    def _login(self, request, query):
        body = json.loads(request.body or b"{}")
        user = next((u for u in self._data["users"] if u["username"] == body.get("username")), None)
        if user is None or user["password"] != body.get("password"):
            return _respond(request, 401, {"message": "Bad credentials"})
        logger.info("Demo login for '%s'", user["username"])
        return _respond(request, 200, {
            "token": f"{_TOKEN_PREFIX}{user['id']}",
            "tokenType": "Bearer",
            "id": user["id"],
            "username": user["username"],
            "email": user["email"],
            "roles": user["roles"],
        })

    def _categories(self, request, user, query):
        return _respond(request, 200, _CATEGORIES)

    def _own_profile(self, request, user, query):
        if user["id"] not in self._data["profiles"]:
            return _respond(request, 404, {"message": "Patient profile not found"})
        return _respond(request, 200, {**self._data["profiles"][user["id"]], "userId": user["id"]})

    def _own_documents(self, request, user, query):
        return _respond(request, 200, self._documents_of(user["id"]))

    def _own_document(self, request, user, query, document_id):
        doc = next((d for d in self._documents_of(user["id"]) if str(d["id"]) == document_id), None)
        if doc is None:
            return _respond(request, 404, {"message": "Document not found"})
        return _respond(request, 200, doc)

    def _own_download(self, request, user, query, document_id):
        if not any(str(d["id"]) == document_id for d in self._documents_of(user["id"])):
            return _respond(request, 404, {"message": "Document not found"})
        return self._file(request, document_id)

    def _profiles(self, request, user, query):
        entries = [self._profile_entry(u) for u in self._patients() if u["id"] in self._data["profiles"]]
        return _respond(request, 200, entries)

    def _directory(self, request, user, query):
        entries = []
        for patient in self._patients():
            entry = {k: patient[k] for k in ("id", "username", "email", "active", "banned")}
            profile = self._data["profiles"].get(patient["id"])
            entry["hasProfile"] = profile is not None
            if profile is not None:
                entry.update(firstName=profile["firstName"], lastName=profile["lastName"], profileId=profile["id"])
            entry["documentCount"] = len(self._documents_of(patient["id"]))
            entries.append(entry)
        return _respond(request, 200, entries)

    def _set_status(self, request, user, query, user_id):
        patient = self._patient(user_id)
        if patient is None:
            return _respond(request, 404, {"message": "Patient not found"})
        patient["active"] = query.get("active") == "true"
        return _respond(request, 200, {"message": "Patient status updated successfully"})

    def _set_ban(self, request, user, query, user_id):
        patient = self._patient(user_id)
        if patient is None:
            return _respond(request, 404, {"message": "Patient not found"})
        patient["banned"] = query.get("banned") == "true"
        if patient["banned"]:
            patient["active"] = False
        return _respond(request, 200, {"message": "Patient ban status updated successfully"})

    def _patient_documents(self, request, user, query, user_id):
        patient = self._patient(user_id)
        if patient is None:
            return _respond(request, 404, {"message": f"Patient with ID {user_id} not found or has no documents"})
        return _respond(request, 200, self._documents_of(patient["id"]))

    def _all_documents(self, request, user, query):
        return _respond(request, 200, [self._document_view(d) for d in self._data["documents"]])

    def _admin_download(self, request, user, query, document_id):
        if not any(str(d["id"]) == document_id for d in self._data["documents"]):
            return _respond(request, 404, {"message": "Document not found"})
        return self._file(request, document_id)

    def _file(self, request, document_id):
        doc = next(d for d in self._data["documents"] if str(d["id"]) == document_id)
        content = f"Demo content for '{doc['title']}'\n".encode("utf-8")
        return _respond(
            request,
            200,
            content=content,
            headers={
                "Content-Type": "text/plain",
                "Content-Disposition": f'attachment; filename="{doc["title"]}.txt"',
            },
        )

    def _statistics(self, request, user, query):
        patients = self._patients()
        docs = self._data["documents"]
        return _respond(request, 200, {
            "totalPatients": len(patients),
            "totalDocuments": len(docs),
            "totalStorageUsed": sum(d["fileSize"] for d in docs),
            "activeUsers": sum(1 for p in patients if p["active"]),
            "inactiveUsers": sum(1 for p in patients if not p["active"]),
            "documentsUploadedToday": 0,
            "documentsUploadedThisMonth": 0,
        })

    def _extended_statistics(self, request, user, query):
        patients = self._patients()
        docs = self._data["documents"]
        document_types: dict[str, int] = {}
        monthly: dict[str, int] = {}
        for doc in docs:
            name = self._document_view(doc)["categoryName"] or "Uncategorised"
            document_types[name] = document_types.get(name, 0) + 1
            month = doc["uploadDate"][:7]
            monthly[month] = monthly.get(month, 0) + 1
        return _respond(request, 200, {
            "totalPatients": len(patients),
            "totalDocuments": len(docs),
            "activePatients": sum(1 for p in patients if p["active"]),
            "inactivePatients": sum(1 for p in patients if not p["active"]),
            "bannedPatients": sum(1 for p in patients if p["banned"]),
            "patientsWithoutProfiles": sum(1 for p in patients if p["id"] not in self._data["profiles"]),
            "totalStorageUsed": sum(d["fileSize"] for d in docs),
            "monthlyUploads": monthly,
            "documentTypes": document_types,
            "patientRegistrations": {},
        })


def _respond(
    request: requests.PreparedRequest,
    status: int,
    payload: Any = None,
    content: bytes | None = None,
    headers: dict[str, str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.request = request
    response.url = request.url
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})
    if content is None:
        content = json.dumps(payload).encode("utf-8") if payload is not None else b""
    response._content = content
    return response
