"""
Command line access to a CIP instance.

    cip-query "SELECT * FROM ccdw_aggr_ocapi_request LIMIT 10"
    cip-query --format json --from yesterday --to today < query.sql
    cip-query --query sales-analytics --site-id RefArch --from "7 days ago" --to today

Credentials and the instance are read from SFCC_CLIENT_ID, SFCC_CLIENT_SECRET and
SFCC_CIP_INSTANCE. SFCC_DEBUG=1 (or --debug) turns on debug logging.
"""

import argparse
import datetime
import logging
import re
import sys
from typing import Any, Dict, List, Optional

import pandas
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

import sfcc_cip
from sfcc_cip.auth.common import is_debug_enabled
from sfcc_cip.queries import get_query, list_queries
from sfcc_cip.utils import collapse_whitespace

logger = logging.getLogger(__name__)

FORMATS = ("table", "json", "csv")
CLI_BATCH_SIZE = 1000

_DAYS_AGO = re.compile(r"^(\d+)\s*days?\s*ago$")


def parse_human_date(value: str, today: Optional[datetime.date] = None) -> datetime.date:
    """Parse `today`, `yesterday`, `N days ago`, `last week`, `last month` or a calendar date."""
    today = today or datetime.date.today()
    text = value.strip().lower()

    if text == "today":
        return today
    if text == "yesterday":
        return today - datetime.timedelta(days=1)
    match = _DAYS_AGO.match(text)
    if match:
        return today - datetime.timedelta(days=int(match.group(1)))
    if text == "last week":
        return today - datetime.timedelta(days=7)
    if text == "last month":
        return today - relativedelta(months=1)

    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        raise ValueError(
            'Unable to parse date: "{}". Try formats like "2024-01-15", "today", '
            '"yesterday", "3 days ago", "last week"'.format(value)
        )


def replace_placeholders(
    sql: str, date_from: Optional[datetime.date], date_to: Optional[datetime.date]
) -> str:
    if date_from is not None:
        sql = sql.replace("<FROM>", "'{}'".format(date_from.strftime("%Y-%m-%d")))
    if date_to is not None:
        sql = sql.replace("<TO>", "'{}'".format(date_to.strftime("%Y-%m-%d")))
    return sql


def render(rows: List[Dict[str, Any]], columns: List[str], output_format: str) -> str:
    if output_format == "json":
        return pandas.DataFrame(rows, columns=columns).to_json(
            orient="records", date_format="iso", indent=2
        )
    if not rows:
        return "No data"
    frame = pandas.DataFrame(rows, columns=columns)
    if output_format == "csv":
        return frame.to_csv(index=False).rstrip("\n")
    return frame.to_string(index=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cip-query",
        description="Run SQL against Commerce Cloud CIP",
        epilog="Environment: SFCC_CLIENT_ID, SFCC_CLIENT_SECRET, SFCC_CIP_INSTANCE, SFCC_DEBUG",
    )
    parser.add_argument("sql", nargs="*", help="SQL text; read from stdin when omitted")
    parser.add_argument("--from", dest="date_from", help="Value for the <FROM> placeholder")
    parser.add_argument("--to", dest="date_to", help="Value for the <TO> placeholder")
    parser.add_argument("--format", choices=FORMATS, default="table", help="Output format")
    parser.add_argument("--query", help="Run a registered query by name instead of SQL")
    parser.add_argument("--site-id", help="Site id for registered queries")
    parser.add_argument("--list", action="store_true", help="List registered queries")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _read_sql(args, stdin) -> str:
    if args.sql:
        return collapse_whitespace(" ".join(args.sql))
    if stdin.isatty():
        raise ValueError("SQL query is required (provide as argument or via stdin)")
    sql = collapse_whitespace(stdin.read())
    if not sql:
        raise ValueError("No SQL query provided via stdin")
    return sql


def _print_query_list(out) -> None:
    for query in list_queries():
        params = ", ".join(query.required_params) or "none"
        print(f"{query.name:32} {query.category:20} {query.description} (requires: {params})", file=out)


def _run(args, stdin, out) -> None:
    date_from = parse_human_date(args.date_from) if args.date_from else None
    date_to = parse_human_date(args.date_to) if args.date_to else None
    if date_from is not None:
        logger.info("Using from date %s (parsed from %r)", date_from, args.date_from)
    if date_to is not None:
        logger.info("Using to date %s (parsed from %r)", date_to, args.date_to)

    parameters = None
    if args.query:
        definition = get_query(args.query)
        if definition is None:
            raise ValueError(f"Unknown query: {args.query}. Use --list to see available queries")
        sql, parameters = definition.build(
            {"site_id": args.site_id, "from": date_from, "to": date_to}
        )
        sql = collapse_whitespace(sql)
    else:
        sql = replace_placeholders(_read_sql(args, stdin), date_from, date_to)

    logger.info("Executing SQL: %s", sql)

    with sfcc_cip.connect() as connection:
        with connection.cursor(arraysize=CLI_BATCH_SIZE) as cursor:
            cursor.execute(sql, parameters or None)
            if cursor.active_result_set is None:
                rows, columns = [], []
            else:
                columns = cursor.active_result_set.columns
                rows = cursor.fetchall()

    print(render(rows, columns, args.format), file=out)
    logger.info("Query completed. Retrieved %d rows.", len(rows))


def main(argv: Optional[List[str]] = None, stdin=None, out=None) -> int:
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or is_debug_enabled() else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.list:
        _print_query_list(out)
        return 0

    try:
        _run(args, stdin, out)
    except (sfcc_cip.Error, ValueError) as e:
        logger.debug("Query failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
