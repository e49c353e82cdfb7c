import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from meridian.session import FileSessionStore, MemorySessionStore, Session


class SessionStoreTests(unittest.TestCase):
    def _exercise(self, store) -> None:
        self.assertIsNone(store.read())
        with self.assertRaises(LookupError):
            store.update(name="Sam")

        store.init(Session(email="sam@example.com"))
        updated = store.update(external_account_id="acct-1")
        self.assertEqual(updated.external_account_id, "acct-1")
        self.assertEqual(store.read(), Session(email="sam@example.com", external_account_id="acct-1"))

        with self.assertRaises(KeyError):
            store.update(password="x")

        store.clear()
        self.assertIsNone(store.read())

    def test_memory_store_lifecycle(self) -> None:
        self._exercise(MemorySessionStore())

    def test_file_store_lifecycle(self) -> None:
        with TemporaryDirectory() as tmp:
            self._exercise(FileSessionStore(Path(tmp) / "nested" / "session.json"))

    def test_file_store_ignores_corrupt_file(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "session.json"
            path.write_text("{not json")
            self.assertIsNone(FileSessionStore(path).read())
            path.write_text('{"name": "no email"}')
            self.assertIsNone(FileSessionStore(path).read())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
