import unittest
from concurrent.futures import ThreadPoolExecutor

from portfolio_api.db import (
    BLOGS,
    PROJECTS,
    USERS,
    VISITORS,
    InMemoryDocumentStore,
    SqlDocumentStore,
)
from portfolio_api.errors import DuplicateKeyError, NotFound, StaleDocumentError
from portfolio_api.migrations import migrate_user_roles


class DocumentStoreContract:
    """Behaviour shared by every store backend."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()

    def test_insert_assigns_id_and_version(self):
        doc = self.store.insert(USERS, {"email": "ada@studio.io", "role": "client"})
        self.assertTrue(doc["id"])
        self.assertEqual(doc["version"], 1)
        self.assertTrue(doc["created_at"])
        self.assertEqual(self.store.get(USERS, doc["id"])["email"], "ada@studio.io")

    def test_replace_is_compare_and_swap(self):
        doc = self.store.insert(PROJECTS, {"status": "requested", "invoices": []})
        first = dict(doc, status="accepted")
        second = dict(doc, status="rejected")

        saved = self.store.replace(PROJECTS, first, expected_version=1)
        self.assertEqual(saved["version"], 2)
        with self.assertRaises(StaleDocumentError):
            self.store.replace(PROJECTS, second, expected_version=1)
        self.assertEqual(self.store.get(PROJECTS, doc["id"])["status"], "accepted")

    def test_replace_missing_document(self):
        with self.assertRaises(NotFound):
            self.store.replace(PROJECTS, {"id": "missing", "version": 1})

    def test_unique_email(self):
        self.store.insert(USERS, {"email": "ada@studio.io"})
        with self.assertRaises(DuplicateKeyError):
            self.store.insert(USERS, {"email": "ada@studio.io"})

    def test_unique_invoice_numbers_across_projects(self):
        self.store.insert(PROJECTS, {"invoices": [{"invoice_number": "INV-A-1-1"}]})
        other = self.store.insert(PROJECTS, {"invoices": []})
        other["invoices"].append({"invoice_number": "INV-A-1-1"})
        with self.assertRaises(DuplicateKeyError):
            self.store.replace(PROJECTS, other)

        other["invoices"] = [{"invoice_number": "INV-B-1-1"}, {"invoice_number": "INV-B-1-1"}]
        with self.assertRaises(DuplicateKeyError):
            self.store.replace(PROJECTS, other)

    def test_find_filters_and_sorts(self):
        self.store.insert(PROJECTS, {"user_id": "u1", "status": "requested", "rank": 2})
        self.store.insert(PROJECTS, {"user_id": "u1", "status": "accepted", "rank": 1})
        self.store.insert(PROJECTS, {"user_id": "u2", "status": "accepted", "rank": 3})

        found = self.store.find(PROJECTS, {"user_id": "u1"}, sort_by="rank")
        self.assertEqual([d["rank"] for d in found], [1, 2])
        self.assertEqual(self.store.count(PROJECTS, {"status": "accepted"}), 2)
        self.assertEqual(
            self.store.find_one(PROJECTS, {"user_id": "u2"})["status"], "accepted"
        )
        self.assertEqual(len(self.store.find(PROJECTS, limit=1)), 1)

    def test_delete(self):
        doc = self.store.insert(USERS, {"email": "ada@studio.io"})
        self.assertTrue(self.store.delete(USERS, doc["id"]))
        self.assertFalse(self.store.delete(USERS, doc["id"]))
        self.assertIsNone(self.store.get(USERS, doc["id"]))

    def test_insert_rejects_duplicate_id(self):
        self.store.insert(VISITORS, {"id": "site", "count": 1})
        with self.assertRaises(DuplicateKeyError):
            self.store.insert(VISITORS, {"id": "site", "count": 1})
        self.assertEqual(self.store.count(VISITORS), 1)

    def test_modify_applies_change_to_latest_version(self):
        doc = self.store.insert(BLOGS, {"slug": "hello", "views": 0})
        self.store.replace(BLOGS, dict(doc, title="Hello"))

        saved = self.store.modify(
            BLOGS, doc["id"], lambda blog: blog.update(views=blog["views"] + 1)
        )
        self.assertEqual(saved["views"], 1)
        self.assertEqual(saved["title"], "Hello")
        self.assertEqual(saved["version"], 3)
        self.assertEqual(saved["created_at"], doc["created_at"])

    def test_modify_missing_document(self):
        self.assertIsNone(self.store.modify(BLOGS, "missing", lambda blog: None))

    def test_modify_leaves_document_when_change_raises(self):
        doc = self.store.insert(BLOGS, {"slug": "hello", "views": 0})

        def refuse(blog):
            blog["views"] = 99
            raise NotFound("Comment not found")

        with self.assertRaises(NotFound):
            self.store.modify(BLOGS, doc["id"], refuse)
        self.assertEqual(self.store.get(BLOGS, doc["id"])["views"], 0)
        self.assertEqual(self.store.get(BLOGS, doc["id"])["version"], 1)

    def test_role_migration_is_idempotent(self):
        self.store.insert(USERS, {"email": "legacy@studio.io"})
        self.store.insert(USERS, {"email": "nulled@studio.io", "role": None})
        self.store.insert(USERS, {"email": "owner@studio.io", "role": "admin"})

        self.assertEqual(migrate_user_roles(self.store), 2)
        self.assertEqual(migrate_user_roles(self.store), 0)
        roles = {u["email"]: u["role"] for u in self.store.find(USERS)}
        self.assertEqual(
            roles,
            {
                "legacy@studio.io": "client",
                "nulled@studio.io": "client",
                "owner@studio.io": "admin",
            },
        )


class InMemoryDocumentStoreTests(DocumentStoreContract, unittest.TestCase):
    def make_store(self):
        return InMemoryDocumentStore()

    def test_returned_documents_are_copies(self):
        doc = self.store.insert(PROJECTS, {"invoices": []})
        doc["invoices"].append({"invoice_number": "INV-X"})
        self.assertEqual(self.store.get(PROJECTS, doc["id"])["invoices"], [])

    def test_concurrent_modify_loses_no_updates(self):
        doc = self.store.insert(BLOGS, {"slug": "hello", "views": 0})

        def bump(_):
            for _ in range(200):
                self.store.modify(
                    BLOGS, doc["id"], lambda blog: blog.update(views=blog["views"] + 1)
                )

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(bump, range(8)))
        saved = self.store.get(BLOGS, doc["id"])
        self.assertEqual(saved["views"], 1600)
        self.assertEqual(saved["version"], 1601)

    def test_reads_during_concurrent_inserts(self):
        def write(worker):
            for n in range(200):
                self.store.insert(PROJECTS, {"user_id": f"u{worker}", "rank": n})

        def read(_):
            for _ in range(50):
                self.store.find(PROJECTS, {"user_id": "u0"}, sort_by="rank")
                self.store.count(PROJECTS)

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(write, w) for w in range(4)]
            futures += [pool.submit(read, r) for r in range(4)]
            for future in futures:
                future.result()
        self.assertEqual(self.store.count(PROJECTS), 800)

    def test_reset(self):
        self.store.insert(USERS, {"email": "ada@studio.io"})
        self.store.reset()
        self.assertEqual(self.store.count(USERS), 0)


class SqlDocumentStoreTests(DocumentStoreContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store.
    """

    def make_store(self):
        return SqlDocumentStore("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDocumentStore("")


if __name__ == "__main__":
    unittest.main()
