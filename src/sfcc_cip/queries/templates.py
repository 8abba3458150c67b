"""SQL templates over the CIP reporting tables (ccdw_*).

Every builder takes a parameter dict and returns ``(sql, parameters)``. Site ids are bound to
``?`` markers; dates are ``datetime.date`` values rendered as literals.
"""

import datetime
from typing import Any, Dict, List, Tuple

from sfcc_cip.queries.helpers import format_date_for_sql, validate_required_params

Template = Tuple[str, List[Any]]


def _date_range(params: Dict[str, Any]) -> Tuple[str, str]:
    return format_date_for_sql(params["from"]), format_date_for_sql(params["to"])


def sales_analytics(params: Dict[str, Any]) -> Template:
    validate_required_params(params, ["site_id", "from", "to"])
    start, end = _date_range(params)
    sql = f"""
        SELECT
          CAST(ss.submit_date AS VARCHAR) AS "date",
          SUM(std_revenue) AS std_revenue,
          SUM(num_orders) AS orders,
          CAST(SUM(std_revenue) / SUM(num_orders) AS DECIMAL(15,2)) AS std_aov,
          SUM(num_units) AS units,
          CAST(SUM(num_units) / SUM(num_orders) AS DECIMAL(15,2)) AS aos,
          SUM(std_tax) AS std_tax,
          SUM(std_shipping) AS std_shipping
        FROM ccdw_aggr_sales_summary ss
        JOIN ccdw_dim_site s ON s.site_id = ss.site_id
        WHERE ss.submit_date >= '{start}'
          AND ss.submit_date <= '{end}'
          AND s.nsite_id = ?
        GROUP BY ss.submit_date
        ORDER BY ss.submit_date
    """
    return sql, [params["site_id"]]


def customer_registration_trends(params: Dict[str, Any]) -> Template:
    validate_required_params(params, ["site_id", "from", "to"])
    start, end = _date_range(params)
    sql = f"""
        SELECT
          r.registration_date AS "date",
          SUM(r.num_registrations) AS new_registrations,
          r.device_class_code,
          s.nsite_id
        FROM ccdw_aggr_registration r
        JOIN ccdw_dim_site s ON s.site_id = r.site_id
        WHERE r.registration_date >= '{start}' AND r.registration_date <= '{end}'
          AND s.nsite_id = ?
        GROUP BY r.registration_date, r.device_class_code, s.nsite_id
        ORDER BY r.registration_date
    """
    return sql, [params["site_id"]]


def customer_growth(params: Dict[str, Any]) -> Template:
    validate_required_params(params, ["site_id", "from", "to"])
    start, end = _date_range(params)
    # latest snapshot per customer list and day, summed across lists
    sql = f"""
        WITH customer_snapshots AS (
          SELECT
            cls.site_id,
            cls.ncustomer_list_id,
            CAST(cls.utc_record_timestamp AS DATE) AS snapshot_date,
            cls.utc_record_timestamp,
            cls.num_customers,
            ROW_NUMBER() OVER (
              PARTITION BY cls.site_id, CAST(cls.utc_record_timestamp AS DATE)
              ORDER BY cls.utc_record_timestamp DESC
            ) AS rn
          FROM ccdw_fact_customer_list_snapshot cls
          JOIN ccdw_dim_site s ON cls.site_id = s.site_id
          WHERE CAST(cls.utc_record_timestamp AS DATE) >= '{start}'
            AND CAST(cls.utc_record_timestamp AS DATE) <= '{end}'
            AND s.nsite_id = ?
        ),
        unique_lists AS (
          SELECT
            ncustomer_list_id,
            snapshot_date,
            num_customers,
            ROW_NUMBER() OVER (
              PARTITION BY ncustomer_list_id, snapshot_date
              ORDER BY utc_record_timestamp DESC
            ) AS rn
          FROM customer_snapshots
          WHERE rn = 1
        )
        SELECT
          snapshot_date,
          SUM(num_customers) AS total_customers
        FROM unique_lists
        WHERE rn = 1
        GROUP BY snapshot_date
        ORDER BY snapshot_date
    """
    return sql, [params["site_id"]]


def customer_registrations_raw(params: Dict[str, Any]) -> Template:
    """Raw ccdw_aggr_registration rows, optionally filtered by site and device class.

    Without a date range every registration from the epoch up to today is included.
    """
    params = dict(params)
    if params.get("from") is None or params.get("to") is None:
        params["from"] = datetime.date(1970, 1, 1)
        params["to"] = datetime.date.today()
    validate_required_params(params, ["from", "to"])
    start, end = _date_range(params)

    sql = "SELECT r.* FROM ccdw_aggr_registration r"
    conditions = [f"r.registration_date >= '{start}' AND r.registration_date <= '{end}'"]
    parameters: List[Any] = []

    if params.get("site_id"):
        sql += " JOIN ccdw_dim_site s ON s.site_id = r.site_id"
        conditions.append("s.nsite_id = ?")
        parameters.append(params["site_id"])

    if params.get("device_class_code"):
        conditions.append("r.device_class_code = ?")
        parameters.append(params["device_class_code"])

    sql += " WHERE " + " AND ".join(conditions)
    return sql, parameters
    return sql, [params["site_id"]]


def top_selling_products(params: Dict[str, Any]) -> Template:
    validate_required_params(params, ["site_id", "from", "to"])
    start, end = _date_range(params)
    sql = f"""
        SELECT
          p.nproduct_id,
          p.product_display_name,
          SUM(pss.num_units) AS units_sold,
          SUM(pss.std_revenue) AS std_revenue,
          SUM(pss.num_orders) AS order_count,
          pss.device_class_code,
          pss.registered,
          s.nsite_id
        FROM ccdw_aggr_product_sales_summary pss
        JOIN ccdw_dim_product p ON p.product_id = pss.product_id
        JOIN ccdw_dim_site s ON s.site_id = pss.site_id
        WHERE pss.submit_date >= '{start}' AND pss.submit_date <= '{end}'
          AND s.nsite_id = ?
        GROUP BY p.nproduct_id, p.product_display_name, pss.device_class_code,
          pss.registered, s.nsite_id
        ORDER BY std_revenue DESC
    """
    return sql, [params["site_id"]]


def search_query_performance(params: Dict[str, Any]) -> Template:
    validate_required_params(params, ["site_id", "from", "to"])
    start, end = _date_range(params)
    # searches that returned results unless the caller asks for the zero-result ones
    has_results = bool(params.get("has_results", True))
    sql = f"""
        WITH conversion AS (
          SELECT
            LOWER(sc.query) AS query,
            SUM(sc.num_searches) AS converted_searches,
            SUM(sc.num_orders) AS orders,
            SUM(sc.std_revenue) AS std_revenue,
            SUM(sc.std_revenue) / NULLIF(CAST(SUM(sc.num_orders) AS FLOAT), 0) AS std_revenue_per_order
          FROM ccdw_aggr_search_conversion sc
          JOIN ccdw_dim_site s ON s.site_id = sc.site_id
          WHERE sc.search_date >= '{start}'
            AND sc.search_date <= '{end}'
            AND s.nsite_id = ?
            AND sc.has_results = ?
          GROUP BY LOWER(sc.query)
        )
        SELECT
          query,
          converted_searches,
          orders,
          std_revenue,
          std_revenue_per_order,
          CASE WHEN converted_searches > 0
               THEN (CAST(orders AS FLOAT) / converted_searches) * 100
               ELSE 0
          END AS conversion_rate
        FROM conversion
        ORDER BY std_revenue DESC
    """
    return sql, [params["site_id"], has_results]


def ocapi_requests(params: Dict[str, Any]) -> Template:
    sql = "SELECT * FROM ccdw_aggr_ocapi_request"
    if params.get("from") is not None and params.get("to") is not None:
        validate_required_params(params, ["from", "to"])
        start, end = _date_range(params)
        sql += f" WHERE request_date >= '{start}' AND request_date <= '{end}'"
    return sql, []
