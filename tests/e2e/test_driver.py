"""
Live tests against a CIP instance. They are skipped unless SFCC_CIP_INSTANCE,
SFCC_CLIENT_ID and SFCC_CLIENT_SECRET are set.
"""

import datetime
import logging
import os
from contextlib import contextmanager

import pytest

import sfcc_cip
from sfcc_cip import Error, ServerOperationError
from sfcc_cip.queries import get_query

log = logging.getLogger(__name__)

unsafe_logger = logging.getLogger("sfcc_cip.unsafe")
unsafe_logger.setLevel(logging.DEBUG)
unsafe_logger.addHandler(logging.FileHandler("./tests-unsafe.log"))

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(
        not all(
            os.getenv(name)
            for name in ("SFCC_CIP_INSTANCE", "SFCC_CLIENT_ID", "SFCC_CLIENT_SECRET")
        ),
        reason="needs SFCC_* credentials for a live CIP instance",
    ),
]


class PyCipTestCase:
    error_type = Error
    arraysize = 100

    @pytest.fixture(autouse=True)
    def get_details(self, connection_details):
        self.arguments = connection_details.copy()

    def connection_params(self):
        return {
            "instance": self.arguments["instance"],
            "client_id": self.arguments["client_id"],
            "client_secret": self.arguments["client_secret"],
        }

    @contextmanager
    def connection(self, extra_params=()):
        connection_params = dict(self.connection_params(), **dict(extra_params))

        log.info("Connecting to instance %s", connection_params["instance"])
        conn = sfcc_cip.connect(**connection_params)

        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def cursor(self, extra_params=()):
        with self.connection(extra_params) as conn:
            cursor = conn.cursor(arraysize=self.arraysize)
            try:
                yield cursor
            finally:
                cursor.close()


class TestPyCipCoreSuite(PyCipTestCase):
    def test_smoke_test(self):
        with self.cursor() as cursor:
            cursor.execute("SELECT 1 AS one")
            rows = cursor.fetchall()
            assert rows == [{"one": 1}]

    def test_connection_id(self):
        with self.connection() as conn:
            assert conn.get_connection_id()
            assert conn.open
        assert not conn.open

    def test_paged_fetch(self):
        self.arraysize = 5
        with self.cursor() as cursor:
            cursor.execute("SELECT request_date FROM ccdw_aggr_ocapi_request LIMIT 12")
            pages = list(cursor.active_result_set.pages())
            assert sum(len(page) for page in pages) <= 12
            assert all(len(page) <= 5 for page in pages)

    def test_positional_parameters(self, site_id):
        with self.cursor() as cursor:
            cursor.execute(
                "SELECT nsite_id FROM ccdw_dim_site WHERE nsite_id = ?", [site_id]
            )
            for row in cursor.fetchall():
                assert row["nsite_id"] == site_id

    def test_invalid_sql_raises_server_error(self):
        with self.cursor() as cursor:
            with pytest.raises(ServerOperationError) as exc_info:
                cursor.execute("SELEC nothing")
            assert "Avatica Error" in str(exc_info.value)

    def test_tables_metadata(self):
        with self.cursor() as cursor:
            cursor.tables(table_name="ccdw_%")
            names = [row["TABLE_NAME"] for row in cursor.fetchall()]
            assert all(name.startswith("ccdw_") for name in names)

    def test_registered_query(self, site_id):
        today = datetime.date.today()
        definition = get_query("sales-analytics")
        params = {"site_id": site_id, "from": today - datetime.timedelta(days=7), "to": today}
        with self.connection() as conn:
            rows = [row for batch in definition.execute(conn, params) for row in batch]
        assert all("std_revenue" in row for row in rows)
