from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Search Metrics
SEARCH_REQUESTS = Counter(
    "search_requests_total",
    "Total number of search requests",
    ["status"]
)

SEARCH_LATENCY = Histogram(
    "search_latency_seconds",
    "Search request latency in seconds",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0]
)

# Crawl Metrics
CRAWL_DOCUMENTS = Counter(
    "crawl_documents_total",
    "Documents produced or lost while crawling, per source type",
    ["source_type", "status"]
)

INDEX_BUILD_TIME = Histogram(
    "index_build_seconds",
    "Time taken to rebuild the full index",
    buckets=[1, 5, 15, 30, 60, 120, 300, 600, 1800]
)

LOCAL_FILE_UPDATES = Counter(
    "local_file_updates_total",
    "Incremental local file operations",
    ["operation", "status"]
)

# Offline cache Metrics
CACHE_PAGES = Counter(
    "offline_cache_pages_total",
    "Pages handled by the offline cache",
    ["status"]
)

def get_metrics():
    """Return latest metrics in Prometheus format."""
    return generate_latest(), CONTENT_TYPE_LATEST
