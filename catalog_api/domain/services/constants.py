# Defaults for the product listing query string.
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"

# Sortable document fields (any other sortBy => natural store order)
SORT_PRICE = "price"
SORT_CREATED_AT = "createdAt"
SORTABLE_FIELDS = {SORT_PRICE, SORT_CREATED_AT}

ASCENDING = 1
DESCENDING = -1

# Fields matched by free-text search
SEARCH_FIELDS = ("productName", "description", "categories")

# Featured products
DEFAULT_FEATURED_MIN_RATING = 4.0
DEFAULT_FEATURED_LIMIT = 10

# Categories aggregation strategies
CATEGORIES_AGGREGATE = "aggregate"
CATEGORIES_SCAN = "scan"

# skip/limit travel as BSON int64
INT64_MAX = 2**63 - 1
