import sfcc_cip
import logging


logger = logging.getLogger("sfcc_cip")
logger.setLevel(logging.DEBUG)
fh = logging.FileHandler("pycip.log")
fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(process)d %(thread)d %(message)s"))
fh.setLevel(logging.DEBUG)
logger.addHandler(fh)

# Credentials and the instance come from SFCC_CLIENT_ID, SFCC_CLIENT_SECRET and SFCC_CIP_INSTANCE
with sfcc_cip.connect() as connection:

    with connection.cursor(arraysize=500) as cursor:
        print("executing query: SELECT * FROM ccdw_aggr_ocapi_request")
        cursor.execute("SELECT * FROM ccdw_aggr_ocapi_request")
        try:
            for page in cursor.active_result_set.pages():
                if page:
                    print(f"page of {len(page)} rows, first: {page[0]}")
        except sfcc_cip.exc.RequestError as e:
            print(f"error: {e}")
