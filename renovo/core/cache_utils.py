"""
Caching utilities for expensive dashboard and report queries
Uses the configured Django cache (Redis in production)
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_CACHE_TTL = 300  # 5 minutes
REPORTS_CACHE_TTL = 600  # 10 minutes

DASHBOARD_CACHE_PREFIX = "dashboard"
PROJECT_REPORT_CACHE_PREFIX = "project_report"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_cache_generation(prefix):
    """Current generation counter for a key prefix; bumping it orphans old keys"""
    generation_key = f"{prefix}:generation"
    generation = cache.get(generation_key)
    if generation is None:
        generation = 1
        cache.set(generation_key, generation, None)
    return generation


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=300, key_prefix="dashboard")
        def build_dashboard(date_from, date_to):
            # expensive aggregation here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            generation = get_cache_generation(key_prefix)
            cache_key = make_cache_key(key_prefix, generation, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_prefix(prefix):
    """Invalidate every cached entry stored under a key prefix"""
    generation_key = f"{prefix}:generation"
    try:
        cache.incr(generation_key)
    except ValueError:
        # Counter expired or was never set
        cache.set(generation_key, 2, None)
    logger.debug(f"Invalidated cache prefix: {prefix}")


def invalidate_dashboard_cache():
    """Invalidate dashboard and per-project report caches"""
    invalidate_cache_prefix(DASHBOARD_CACHE_PREFIX)
    invalidate_cache_prefix(PROJECT_REPORT_CACHE_PREFIX)
    logger.info("Invalidated dashboard cache")
