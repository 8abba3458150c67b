"""
Runs a registered report query and streams its pages as they arrive.
"""

import datetime

import sfcc_cip
from sfcc_cip.queries import get_query, list_queries

for query in list_queries():
    print(f"{query.name}: {query.description}")

today = datetime.date.today()
params = {
    "site_id": "RefArch",
    "from": today - datetime.timedelta(days=30),
    "to": today,
}

with sfcc_cip.connect() as connection:
    for batch in get_query("sales-analytics").execute(connection, params, batch_size=50):
        for row in batch:
            print(row["date"], row["std_revenue"], row["orders"])
