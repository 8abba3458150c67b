from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sfcc_cip.queries import templates
from sfcc_cip.queries.helpers import DEFAULT_BATCH_SIZE, execute_query


@dataclass(frozen=True)
class QueryDefinition:
    name: str
    description: str
    category: str
    required_params: List[str]
    build: Callable[[Dict[str, Any]], templates.Template]
    optional_params: List[str] = field(default_factory=list)

    def execute(self, connection, params: Dict[str, Any], batch_size: int = DEFAULT_BATCH_SIZE):
        sql, parameters = self.build(params)
        return execute_query(connection, sql, parameters, batch_size)


_QUERIES = [
    QueryDefinition(
        name="sales-analytics",
        description="Daily revenue, orders, AOV and units for a site",
        category="Sales Analytics",
        required_params=["site_id", "from", "to"],
        build=templates.sales_analytics,
    ),
    QueryDefinition(
        name="customer-registration-trends",
        description="Track customer acquisition effectiveness and registration drivers",
        category="Customer Analytics",
        required_params=["site_id", "from", "to"],
        build=templates.customer_registration_trends,
    ),
    QueryDefinition(
        name="customer-growth",
        description="Analyze customer base growth over time",
        category="Customer Analytics",
        required_params=["site_id", "from", "to"],
        build=templates.customer_growth,
    ),
    QueryDefinition(
        name="customer-registrations-raw",
        description="Query raw registration data for custom analysis",
        category="Customer Analytics",
        required_params=[],
        optional_params=["site_id", "device_class_code", "from", "to"],
        build=templates.customer_registrations_raw,
    ),
    QueryDefinition(
        name="top-selling-products",
        description="Products ranked by revenue for a site and date range",
        category="Product Analytics",
        required_params=["site_id", "from", "to"],
        build=templates.top_selling_products,
    ),
    QueryDefinition(
        name="search-query-performance",
        description="Search terms ranked by revenue with their conversion rate",
        category="Search Analytics",
        required_params=["site_id", "from", "to"],
        optional_params=["has_results"],
        build=templates.search_query_performance,
    ),
    QueryDefinition(
        name="ocapi-requests",
        description="Raw OCAPI request aggregates, optionally limited to a date range",
        category="Technical Analytics",
        required_params=[],
        optional_params=["from", "to"],
        build=templates.ocapi_requests,
    ),
]


def list_queries() -> List[QueryDefinition]:
    return list(_QUERIES)


def get_query(name: str) -> Optional[QueryDefinition]:
    for query in _QUERIES:
        if query.name == name:
            return query
    return None


def queries_by_category() -> Dict[str, List[QueryDefinition]]:
    by_category: Dict[str, List[QueryDefinition]] = {}
    for query in _QUERIES:
        by_category.setdefault(query.category, []).append(query)
    return by_category
