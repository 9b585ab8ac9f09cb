import unittest
from sqlalchemy.exc import OperationalError
from cloudsync.models.results import ComparisonStatus
from cloudsync.services.comparator import Comparator
from tests.base import SqliteTestCase


class RecordingComparator(Comparator):
    """记录 COUNT 查询，并可让指定的表查询失败"""

    def __init__(self, failing_tables=(), error=None):
        super().__init__()
        self.counted = []
        self.failing_tables = set(failing_tables)
        self.error = error or OperationalError(
            "SELECT COUNT(*)", {}, Exception("server closed the connection unexpectedly"))

    def row_count(self, handle, table_name):
        self.counted.append((handle, table_name))
        if table_name in self.failing_tables:
            raise self.error
        return super().row_count(handle, table_name)


class TestComparator(SqliteTestCase):
    def setUp(self):
        super().setUp()
        for handle in (self.local, self.remote):
            self.execute(handle, "CREATE TABLE orders (id INTEGER PRIMARY KEY, total REAL)")
        self.comparator = RecordingComparator()

    def fill(self, handle, table, count):
        if count:
            self.insert_rows(handle, table, [{"id": i, "total": i * 1.5} for i in range(1, count + 1)])

    def test_matching_and_missing_tables(self):
        self.fill(self.local, "orders", 10)
        self.fill(self.remote, "orders", 10)

        results = self.comparator.compare(self.local, self.remote, ["orders", "missing_tbl"])

        self.assertEqual([r.table_name for r in results], ["orders", "missing_tbl"])
        self.assertEqual(results[0].status, ComparisonStatus.MATCH)
        self.assertEqual((results[0].local_count, results[0].remote_count), (10, 10))
        self.assertEqual(results[1].status, ComparisonStatus.ERROR)
        self.assertIsNone(results[1].remote_count)
        self.assertIsNone(results[1].local_count)

    def test_empty_tables_match(self):
        results = self.comparator.compare(self.local, self.remote, ["orders"])
        self.assertEqual(results[0].status, ComparisonStatus.MATCH)
        self.assertEqual((results[0].local_count, results[0].remote_count), (0, 0))

    def test_mismatch(self):
        self.fill(self.local, "orders", 3)
        results = self.comparator.compare(self.local, self.remote, ["orders"])
        self.assertEqual(results[0].status, ComparisonStatus.MISMATCH)
        self.assertEqual((results[0].local_count, results[0].remote_count), (3, 0))

    def test_local_only(self):
        self.execute(self.local, "CREATE TABLE customers (id INTEGER PRIMARY KEY)")
        self.insert_rows(self.local, "customers", [{"id": 1}, {"id": 2}])

        result = self.comparator.compare(self.local, self.remote, ["customers"])[0]

        self.assertEqual(result.status, ComparisonStatus.LOCAL_ONLY)
        self.assertEqual(result.local_count, 2)
        self.assertIsNone(result.remote_count)
        self.assertNotIn((self.remote, "customers"), self.comparator.counted)

    def test_missing_locally_never_counts(self):
        self.execute(self.remote, "CREATE TABLE invoices (id INTEGER PRIMARY KEY)")

        result = self.comparator.compare(self.local, self.remote, ["invoices"])[0]

        self.assertEqual(result.status, ComparisonStatus.REMOTE_ONLY)
        self.assertEqual(self.comparator.counted, [])

    def test_error_is_scoped_to_one_table(self):
        self.execute(self.local, "CREATE TABLE customers (id INTEGER PRIMARY KEY)")
        self.execute(self.remote, "CREATE TABLE customers (id INTEGER PRIMARY KEY)")
        comparator = RecordingComparator(failing_tables=["orders"])

        results = comparator.compare(self.local, self.remote, ["orders", "customers"])

        self.assertEqual(results[0].status, ComparisonStatus.ERROR)
        self.assertIn("server closed the connection", results[0].error_detail)
        self.assertEqual(results[1].status, ComparisonStatus.MATCH)

    def test_unexpected_error_is_scoped_to_one_table(self):
        self.execute(self.local, "CREATE TABLE customers (id INTEGER PRIMARY KEY)")
        self.execute(self.remote, "CREATE TABLE customers (id INTEGER PRIMARY KEY)")
        comparator = RecordingComparator(failing_tables=["orders"],
                                         error=ValueError("invalid literal for int() with base 10: 'n/a'"))

        results = comparator.compare(self.local, self.remote, ["orders", "customers"])

        self.assertEqual(results[0].status, ComparisonStatus.ERROR)
        self.assertEqual(results[0].error_detail, "invalid literal for int() with base 10: 'n/a'")
        self.assertEqual(results[1].status, ComparisonStatus.MATCH)

    def test_result_order_follows_input(self):
        self.execute(self.local, "CREATE TABLE a (id INTEGER)", "CREATE TABLE b (id INTEGER)")
        self.execute(self.remote, "CREATE TABLE a (id INTEGER)", "CREATE TABLE b (id INTEGER)")
        names = ["b", "orders", "nope", "a"]
        results = self.comparator.compare(self.local, self.remote, names)
        self.assertEqual([r.table_name for r in results], names)

    def test_to_dict(self):
        result = self.comparator.compare(self.local, self.remote, ["orders"])[0]
        self.assertEqual(result.to_dict(), {
            "table_name": "orders",
            "local_count": 0,
            "remote_count": 0,
            "status": "match",
            "error_detail": None,
        })


if __name__ == '__main__':
    unittest.main()
