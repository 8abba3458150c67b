import datetime
import io
import json
from unittest.mock import MagicMock, patch

import pytest

from sfcc_cip.cli import main, parse_human_date, render, replace_placeholders
from sfcc_cip.exc import ServerOperationError

TODAY = datetime.date(2024, 3, 15)


class TestParseHumanDate:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("today", TODAY),
            ("Yesterday", datetime.date(2024, 3, 14)),
            ("3 days ago", datetime.date(2024, 3, 12)),
            ("1 day ago", datetime.date(2024, 3, 14)),
            ("last week", datetime.date(2024, 3, 8)),
            ("last month", datetime.date(2024, 2, 15)),
            ("2024-01-15", datetime.date(2024, 1, 15)),
            ("Jan 5 2023", datetime.date(2023, 1, 5)),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_human_date(text, today=TODAY) == expected

    def test_unparseable(self):
        with pytest.raises(ValueError, match='Unable to parse date: "someday"'):
            parse_human_date("someday", today=TODAY)


class TestFormatting:
    def test_replace_placeholders(self):
        sql = "SELECT * FROM t WHERE d >= <FROM> AND d <= <TO> OR e = <FROM>"
        assert replace_placeholders(sql, datetime.date(2024, 1, 1), None) == (
            "SELECT * FROM t WHERE d >= '2024-01-01' AND d <= <TO> OR e = '2024-01-01'"
        )

    def test_render_formats(self):
        rows = [{"api_name": "shop", "calls": 3}, {"api_name": "data, v2", "calls": None}]
        columns = ["api_name", "calls"]

        assert json.loads(render(rows, columns, "json")) == [
            {"api_name": "shop", "calls": 3.0},
            {"api_name": "data, v2", "calls": None},
        ]
        assert render(rows, columns, "csv").splitlines() == [
            "api_name,calls",
            "shop,3.0",
            '"data, v2",',
        ]
        table = render(rows, columns, "table")
        assert "api_name" in table and "shop" in table

    def test_render_empty(self):
        assert render([], ["a"], "table") == "No data"
        assert render([], ["a"], "csv") == "No data"
        assert json.loads(render([], ["a"], "json")) == []


class TestMain:
    @pytest.fixture
    def cursor(self):
        cursor = MagicMock()
        cursor.__enter__.return_value = cursor
        cursor.active_result_set.columns = ["n"]
        cursor.fetchall.return_value = [{"n": 1}, {"n": 2}]
        return cursor

    @pytest.fixture
    def mock_connect(self, cursor):
        with patch("sfcc_cip.connect") as connect:
            connection = MagicMock()
            connection.__enter__.return_value = connection
            connection.cursor.return_value = cursor
            connect.return_value = connection
            yield connect

    def test_sql_from_arguments(self, mock_connect, cursor):
        out = io.StringIO()
        assert main(["--format", "csv", "SELECT", "n", "FROM", "t"], out=out) == 0
        cursor.execute.assert_called_once_with("SELECT n FROM t", None)
        assert out.getvalue().splitlines() == ["n", "1", "2"]

    def test_sql_from_stdin_with_placeholders(self, mock_connect, cursor):
        stdin = io.StringIO("SELECT n\n  FROM t\n WHERE d >= <FROM>\n  AND d <= <TO>\n")
        out = io.StringIO()

        assert main(["--from", "2024-01-01", "--to", "2024-01-31"], stdin=stdin, out=out) == 0

        cursor.execute.assert_called_once_with(
            "SELECT n FROM t WHERE d >= '2024-01-01' AND d <= '2024-01-31'", None
        )

    def test_empty_stdin_is_an_error(self, mock_connect, capsys):
        assert main([], stdin=io.StringIO("   \n"), out=io.StringIO()) == 1
        assert "Error: No SQL query provided via stdin" in capsys.readouterr().err
        mock_connect.assert_not_called()

    def test_bad_date_is_an_error(self, mock_connect, capsys):
        assert main(["--from", "whenever", "SELECT 1"], out=io.StringIO()) == 1
        assert 'Error: Unable to parse date: "whenever"' in capsys.readouterr().err

    def test_server_error(self, mock_connect, cursor, capsys):
        cursor.execute.side_effect = ServerOperationError(
            "Avatica Error: bad (SQLState: 42000, ErrorCode: 1)"
        )
        assert main(["SELEC"], out=io.StringIO()) == 1
        assert (
            "Error: Avatica Error: bad (SQLState: 42000, ErrorCode: 1)"
            in capsys.readouterr().err
        )

    def test_registered_query(self, mock_connect, cursor):
        out = io.StringIO()
        code = main(
            [
                "--query",
                "sales-analytics",
                "--site-id",
                "RefArch",
                "--from",
                "2024-01-01",
                "--to",
                "2024-01-31",
                "--format",
                "json",
            ],
            out=out,
        )

        assert code == 0
        sql, parameters = cursor.execute.call_args[0]
        assert "ccdw_aggr_sales_summary" in sql
        assert "\n" not in sql
        assert parameters == ["RefArch"]
        assert json.loads(out.getvalue()) == [{"n": 1}, {"n": 2}]

    def test_registered_query_missing_site(self, mock_connect, capsys):
        code = main(
            ["--query", "sales-analytics", "--from", "2024-01-01", "--to", "2024-01-31"],
            out=io.StringIO(),
        )
        assert code == 1
        assert "Missing required parameters: site_id" in capsys.readouterr().err

    def test_unknown_query(self, mock_connect, capsys):
        assert main(["--query", "nope"], out=io.StringIO()) == 1
        assert "Unknown query: nope" in capsys.readouterr().err

    def test_list(self, mock_connect):
        out = io.StringIO()
        assert main(["--list"], out=out) == 0
        assert "sales-analytics" in out.getvalue()
        mock_connect.assert_not_called()
