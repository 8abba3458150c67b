"""
This example demonstrates positional parameters. Values are bound to `?` markers and sent to
the server as typed values, so no quoting or escaping is needed.
"""

import datetime
import os
from decimal import Decimal

import sfcc_cip

connection = sfcc_cip.connect(
    instance=os.getenv("SFCC_CIP_INSTANCE"),
    client_id=os.getenv("SFCC_CLIENT_ID"),
    client_secret=os.getenv("SFCC_CLIENT_SECRET"),
)

# Example 1: strings, numbers and booleans are inferred from the Python value.
with connection.cursor() as cursor:
    cursor.execute(
        "SELECT nsite_id FROM ccdw_dim_site WHERE nsite_id = ?",
        ["RefArch"],
    )
    print("\nEXAMPLE 1")
    print(cursor.fetchall())

# Example 2: dates and datetimes are sent as timestamps. Other values, like Decimal, are sent
# as their string form.
with connection.cursor() as cursor:
    cursor.execute(
        "SELECT submit_date, std_revenue FROM ccdw_aggr_sales_summary "
        "WHERE submit_date >= ? AND std_revenue > ? LIMIT 5",
        [datetime.date.today() - datetime.timedelta(days=7), Decimal("100.00")],
    )
    print("\nEXAMPLE 2")
    for row in cursor.fetchall():
        print(row)

# Example 3: named parameters are not supported and raise NotSupportedError.
with connection.cursor() as cursor:
    try:
        cursor.execute("SELECT :site", {"site": "RefArch"})
    except sfcc_cip.NotSupportedError as e:
        print("\nEXAMPLE 3")
        print(f"rejected: {e}")

connection.close()
