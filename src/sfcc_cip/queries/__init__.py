from sfcc_cip.queries.helpers import (
    execute_query,
    format_date_for_sql,
    validate_required_params,
)
from sfcc_cip.queries.registry import (
    QueryDefinition,
    get_query,
    list_queries,
    queries_by_category,
)
