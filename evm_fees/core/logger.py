# /evm_fees/core/logger.py
import logging
import structlog
import sentry_sdk
from prometheus_client import Counter
from evm_fees.core.config import settings

# --- Prometheus Metrics ---
FEE_ESTIMATES = Counter("evm_fees_estimates_total", "Fee estimation calls by engine and outcome", ["engine", "outcome"])
FALLBACKS_TAKEN = Counter("evm_fees_fallbacks_total", "Fallback values substituted after a failure", ["operation"])
RPC_FAILURES = Counter("evm_fees_rpc_failures_total", "Failed JSON-RPC requests", ["method"])


def configure_logging():
    """Installs the package's structlog/Sentry setup unless EVM_FEES_CONFIGURE_LOGGING is false."""
    if not settings.CONFIGURE_LOGGING:
        return

    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN.get_secret_value(), traces_sample_rate=1.0)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)


configure_logging()
log = get_logger("evm_fees")
