import sfcc_cip
import os

with sfcc_cip.connect(
    instance=os.getenv("SFCC_CIP_INSTANCE"),
    client_id=os.getenv("SFCC_CLIENT_ID"),
    client_secret=os.getenv("SFCC_CLIENT_SECRET"),
) as connection:

    with connection.cursor() as cursor:
        cursor.execute("SELECT * FROM ccdw_aggr_ocapi_request LIMIT 10")
        result = cursor.fetchall()

        for row in result:
            print(row)
