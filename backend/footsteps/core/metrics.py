"""
Prometheus metrics configuration
"""
import os

from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram, Info,
                               generate_latest)
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import REGISTRY, CollectorRegistry

if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    _registry = CollectorRegistry()
    MultiProcessCollector(_registry)
else:
    _registry = REGISTRY

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Generative model metrics
# ============================================================================

genai_requests_total = Counter(
    'genai_requests_total',
    'Total number of generative model requests',
    ['model', 'endpoint', 'status']  # status: 'success' or 'error'
)

genai_request_duration_seconds = Histogram(
    'genai_request_duration_seconds',
    'Generative model request duration in seconds',
    ['model', 'endpoint'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
)

genai_retries_total = Counter(
    'genai_retries_total',
    'Retries scheduled after a transient remote fault',
    ['reason']  # reason: 'rate_limited', 'overloaded', 'server_fault'
)

genai_offline_skips_total = Counter(
    'genai_offline_skips_total',
    'Remote calls skipped because the connectivity probe reported offline'
)

feature_fallbacks_total = Counter(
    'feature_fallbacks_total',
    'Feature calls answered without a model result',
    ['feature', 'kind']  # kind: 'canned' or 'none'
)

app_info = Info('app_info', 'Application information')

from footsteps.core.config import get_settings

try:
    _settings = get_settings()
    app_info.info({
        'app_name': _settings.app_name,
        'app_env': _settings.app_env,
        'version': '0.1.0'
    })
except Exception:
    pass  # Settings may not be available during import


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format"""
    return generate_latest(_registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
