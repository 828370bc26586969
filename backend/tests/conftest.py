# shared fixtures for backend api tests
# provides an in-memory mock db, test users and httpx test clients

import copy

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from bson import ObjectId
from pymongo.errors import OperationFailure

from httpx import AsyncClient, ASGITransport

from practice_admin.main import app
from practice_admin.services.backend import BackendClient
from practice_admin.services.cache import query_cache
from practice_admin.services.db import get_db
from practice_admin.services.auth_service import hash_password
from practice_admin.dependencies import get_current_user


ADMIN_PASSWORD = "admin-pass-123"

# test user rows (as they'd appear from the users table)

ADMIN_ROW = {
    "id": 1,
    "email": "admin@practice.local",
    "hashed_password": hash_password(ADMIN_PASSWORD),
    "name": "Admin",
    "role": "admin",
    "created_at": "2024-01-01T00:00:00+00:00",
}

ASSISTANT_ROW = {
    "id": 2,
    "email": "assistant@practice.local",
    "hashed_password": hash_password(ADMIN_PASSWORD),
    "name": "Assistant",
    "role": "assistant",
    "created_at": "2024-01-01T00:00:00+00:00",
}


# sample tables

SAMPLE_TABLES = {
    "users": [ADMIN_ROW, ASSISTANT_ROW],
    "patients": [
        {"id": 1, "name": "Dana Levi", "phone": "050-1111111", "email": "dana@example.com", "notes": None, "session_price": 400},
        {"id": 2, "name": "Avi Cohen", "phone": "050-2222222", "email": "avi@example.com", "notes": "evening only", "session_price": 350},
    ],
    "session_types": [
        {"id": 1, "name": "פגישה רגילה (קוד הנפש)", "code": "regular", "duration_minutes": 90, "is_default": True},
        {"id": 2, "name": "פגישת אינטייק", "code": "intake", "duration_minutes": 75, "is_default": False},
        {"id": 3, "name": "פגישת SEFT", "code": "seft", "duration_minutes": 240, "is_default": False},
    ],
    "sessions": [
        {"id": 1, "patient_id": 1, "session_date": "2024-05-20T10:00:00+03:00", "meeting_type": "Zoom",
         "session_type_id": 1, "paid_amount": 400, "payment_status": "paid"},
        {"id": 2, "patient_id": 1, "session_date": "2024-06-03T10:00:00+03:00", "meeting_type": "Zoom",
         "session_type_id": 1, "paid_amount": None, "payment_status": "pending"},
        {"id": 3, "patient_id": 2, "session_date": "2024-06-04T18:00:00+03:00", "meeting_type": "In-Person",
         "session_type_id": 2, "paid_amount": 100, "payment_status": "partial"},
    ],
    "future_sessions": [
        {"id": 1, "patient_id": 1, "session_date": "2024-06-18T10:00:00+03:00", "end_time": None,
         "meeting_type": "Zoom", "session_type_id": 1, "status": "scheduled"},
        {"id": 2, "patient_id": 2, "session_date": "2024-06-20T14:00:00+03:00", "end_time": None,
         "meeting_type": "Phone", "session_type_id": 3, "status": "scheduled"},
        {"id": 3, "patient_id": 1, "session_date": "2024-09-01T10:00:00+03:00", "end_time": None,
         "meeting_type": "Zoom", "session_type_id": 1, "status": "scheduled"},
    ],
    "calendar_slots": [
        {"id": 1, "date": "2024-06-16", "day_of_week": 0, "start_time": "09:00", "end_time": "10:00",
         "status": "available", "slot_type": "available", "notes": "", "is_recurring": False},
        {"id": 2, "date": "2024-06-17", "day_of_week": 1, "start_time": "12:00", "end_time": "13:00",
         "status": "private", "slot_type": "private", "notes": "lunch", "is_recurring": False},
        {"id": 3, "date": "2024-03-01", "day_of_week": 5, "start_time": "09:00", "end_time": "10:00",
         "status": "available", "slot_type": "available", "notes": "", "is_recurring": False},
    ],
    "transactions": [
        {"id": 1, "date": "2024-06-10", "amount": 400, "type": "income", "status": "confirmed", "source": "session",
         "category": "therapy", "client_name": "Dana Levi", "client_id": 1, "payment_method": "bit"},
        {"id": 2, "date": "2024-05-03", "amount": 350, "type": "income", "status": "draft", "source": "session",
         "category": "therapy", "client_name": "Avi Cohen", "client_id": 2, "payment_method": "cash"},
        {"id": 3, "date": "2024-06-01", "amount": 1200, "type": "expense", "status": "confirmed", "category": "rent",
         "client_name": "Landlord", "source": "June rent", "payment_method": "transfer"},
        {"id": 4, "date": "2023-01-15", "amount": 90, "type": "expense", "status": "confirmed", "category": "supplies",
         "client_name": "Office shop", "source": "paper", "payment_method": "cash"},
    ],
    "finance_categories": [
        {"id": 1, "name": "טיפולים", "type": "income"},
        {"id": 2, "name": "ייעוץ", "type": "income"},
        {"id": 3, "name": "שכירות", "type": "expense"},
    ],
    "payment_methods": [
        {"id": 1, "name": "מזומן"},
        {"id": 2, "name": "ביט"},
    ],
    "testimonials": [
        {"id": 3, "name": "R.", "summary": "image only", "text_full": None, "image_url": "https://cdn.example.com/r.png"},
        {"id": 1, "name": "M.", "summary": "short", "text_full": "the full story", "image_url": None},
        {"id": 2, "name": "S.", "summary": "summary only", "text_full": None, "image_url": None},
    ],
    "faq_questions": [
        {"id": 1, "question": "How long is a session?", "answer": "90 minutes", "category": "general", "order_index": 2, "is_active": True},
        {"id": 2, "question": "Do you work online?", "answer": "Yes", "category": "general", "order_index": 1, "is_active": True},
        {"id": 3, "question": "Old question", "answer": "Old answer", "category": "general", "order_index": 0, "is_active": False},
    ],
    "stories": [
        {"id": 1, "title": "First story", "description": "", "image_url": "", "pdf_url": "", "publish_date": "2024-01-01T00:00:00+00:00"},
        {"id": 2, "title": "Second story", "description": "", "image_url": "", "pdf_url": "", "publish_date": "2024-05-01T00:00:00+00:00"},
    ],
    "professional_content": [
        {"id": 1, "title": "On listening", "content_markdown": "# listening", "type": "article", "category_id": None,
         "contact_email": "admin@practice.local", "published_at": None, "created_at": "2024-05-01T00:00:00+00:00"},
    ],
    "article_publications": [
        {"id": 1, "content_id": 1, "publish_location": "Email", "scheduled_date": "2024-06-01T08:00:00+00:00", "published_date": None},
        {"id": 2, "content_id": 1, "publish_location": "Website", "scheduled_date": "2024-05-01T08:00:00+00:00",
         "published_date": "2024-05-01T08:00:05+00:00"},
        {"id": 3, "content_id": 1, "publish_location": "WhatsApp", "scheduled_date": "2099-01-01T08:00:00+00:00", "published_date": None},
    ],
    "email_logs": [
        {"id": 1, "article_id": 1, "email": "a@example.com", "status": "failed"},
        {"id": 2, "article_id": 1, "email": "a@example.com", "status": "failed"},
        {"id": 3, "article_id": 1, "email": "b@example.com", "status": "failed"},
        {"id": 4, "article_id": 1, "email": "c@example.com", "status": "sent"},
    ],
    "content_subscribers": [
        {"id": 1, "email": "a@example.com", "first_name": "A", "is_subscribed": True},
        {"id": 2, "email": "a@example.com", "first_name": "A", "is_subscribed": True},
        {"id": 3, "email": "d@example.com", "first_name": "D", "is_subscribed": False},
        {"id": 4, "email": "e@example.com", "first_name": "E", "is_subscribed": True},
    ],
}


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor: supports async for and chained methods"""

    def __init__(self, data=None):
        self._data = data or []
        self._index = 0

    def sort(self, keys, direction=None):
        if isinstance(keys, str):
            keys = [(keys, direction or 1)]
        # stable sorts applied from the last key to the first, nulls lowest
        for key, order in reversed(list(keys)):
            self._data = sorted(
                self._data,
                key=lambda d: (d.get(key) is not None, d.get(key) if d.get(key) is not None else 0),
                reverse=order < 0,
            )
        return self

    def skip(self, n):
        self._data = self._data[n:]
        return self

    def limit(self, n):
        self._data = self._data[:n]
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item

    async def to_list(self, length=None):
        if length is not None:
            return self._data[:length]
        return self._data


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise OperationFailure("connection reset by peer")

    def find(self, query=None, projection=None):
        self._check()
        results = [copy.deepcopy(d) for d in self._data if self._matches(d, query or {})]
        return AsyncCursorMock(results)

    async def find_one(self, query=None, projection=None):
        self._check()
        for doc in self._data:
            if self._matches(doc, query or {}):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        self._check()
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def count_documents(self, query=None):
        return len([d for d in self._data if self._matches(d, query or {})])

    async def update_many(self, query, update):
        self._check()
        result = MagicMock()
        result.modified_count = 0
        for doc in self._data:
            if self._matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                result.modified_count += 1
        return result

    async def delete_many(self, query):
        self._check()
        before = len(self._data)
        self._data = [d for d in self._data if not self._matches(d, query)]
        result = MagicMock()
        result.deleted_count = before - len(self._data)
        return result

    async def find_one_and_update(self, query, update, upsert=False, return_document=None):
        for doc in self._data:
            if self._matches(doc, query):
                break
        else:
            if not upsert:
                return None
            doc = dict(query)
            self._data.append(doc)
        for key, inc in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + inc
        return copy.deepcopy(doc)

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            doc_val = doc.get(key)
            if isinstance(value, dict):
                for op, operand in value.items():
                    if not _compare(op, doc_val, operand):
                        return False
            elif doc_val != value:
                return False
        return True


def _compare(op, doc_val, operand):
    if op == "$eq":
        return doc_val == operand
    if op == "$ne":
        return doc_val != operand
    if op == "$in":
        return doc_val in operand
    if doc_val is None or operand is None:
        return False
    if op == "$gt":
        return doc_val > operand
    if op == "$gte":
        return doc_val >= operand
    if op == "$lt":
        return doc_val < operand
    if op == "$lte":
        return doc_val <= operand
    raise ValueError(f"unsupported operator in mock: {op}")


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self, tables=None):
        tables = SAMPLE_TABLES if tables is None else tables
        self._tables = {name: MockCollection(copy.deepcopy(rows)) for name, rows in tables.items()}
        # keep the id counters ahead of the seeded rows
        self._tables["counters"] = MockCollection([
            {"_id": name, "seq": max((r["id"] for r in rows), default=0)}
            for name, rows in tables.items()
        ])

    def table(self, name):
        if name not in self._tables:
            self._tables[name] = MockCollection([])
        return self._tables[name]

    async def table_names(self):
        return [name for name, coll in self._tables.items() if coll._data]

    def rows(self, name):
        """stored rows without the mongo _id"""
        return [{k: v for k, v in d.items() if k != "_id"} for d in self.table(name)._data]

    @property
    def users(self):
        return self.table("users")

    @property
    def counters(self):
        return self.table("counters")

    @property
    def oauth_tokens(self):
        return self.table("oauth_tokens")

    async def connect(self):
        pass

    async def close(self):
        pass


@pytest.fixture(autouse=True)
def clear_query_cache():
    """the query cache is process-wide, start every test empty"""
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest.fixture
def backend(mock_db):
    return BackendClient(mock_db)


def _admin_dict():
    return copy.deepcopy(ADMIN_ROW)


def _assistant_dict():
    return copy.deepcopy(ASSISTANT_ROW)


async def _client_for(mock_db, user=None):
    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    if user is not None:
        async def override_get_current_user():
            return user()
        app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def client(mock_db):
    """httpx async test client with only the database mocked"""
    async with await _client_for(mock_db) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(mock_db):
    """client authenticated as the practice admin"""
    async with await _client_for(mock_db, _admin_dict) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def assistant_client(mock_db):
    """client authenticated as a non-admin user"""
    async with await _client_for(mock_db, _assistant_dict) as ac:
        yield ac
    app.dependency_overrides.clear()
