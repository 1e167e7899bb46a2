# /evm_fees/core/decorators.py
# Reusable decorators for transport resilience.
from tenacity import retry, stop_after_attempt, wait_exponential, before_sleep_log
from evm_fees.core.config import settings
from evm_fees.core.logger import get_logger
import logging

log = get_logger(__name__)


def retriable_network_call(attempts: int | None = None):
    """
    Retry decorator for raw RPC requests.

    Defaults to ``settings.RPC_MAX_ATTEMPTS`` which is 1, i.e. a single
    attempt. Operators can opt in to retries at the transport layer; the
    estimation engines never retry on their own.
    """
    return retry(
        stop=stop_after_attempt(max(1, attempts or settings.RPC_MAX_ATTEMPTS)),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,  # Re-raise the last exception after retries are exhausted
    )
