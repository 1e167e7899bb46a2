import pytest
import structlog

from evm_fees import get_fee_snapshot, get_suggested_fees
from evm_fees.core.config import settings
from evm_fees.core.logger import FALLBACKS_TAKEN, FEE_ESTIMATES, RPC_FAILURES, configure_logging, get_logger


def test_logger_accepts_structured_events(capsys):
    log = get_logger("test")
    log.warning("UNIT_TEST_EVENT", data=1)
    out = capsys.readouterr().out
    assert "UNIT_TEST_EVENT" in out
    assert '"data": 1' in out


@pytest.mark.asyncio
async def test_fallback_updates_prometheus_counters(dead_transport):
    fallbacks = FEE_ESTIMATES.labels("suggested", "fallback")
    taken = FALLBACKS_TAKEN.labels("get_suggested_fees")
    failures = RPC_FAILURES.labels("eth_feeHistory")
    before = (fallbacks._value.get(), taken._value.get(), failures._value.get())

    await get_suggested_fees(dead_transport)

    assert fallbacks._value.get() == before[0] + 1
    assert taken._value.get() == before[1] + 1
    # Quick sample and full history both failed
    assert failures._value.get() == before[2] + 2


@pytest.mark.asyncio
async def test_snapshot_success_is_counted(transport):
    successes = FEE_ESTIMATES.labels("snapshot", "success")
    initial = successes._value.get()

    await get_fee_snapshot(transport)

    assert successes._value.get() == initial + 1


def test_logging_setup_can_be_left_to_the_host(monkeypatch):
    """
    GIVEN EVM_FEES_CONFIGURE_LOGGING=false
    WHEN configure_logging runs
    THEN structlog keeps the host's configuration.
    """
    structlog.reset_defaults()
    try:
        monkeypatch.setattr(settings, "CONFIGURE_LOGGING", False)
        configure_logging()
        assert not structlog.is_configured()

        monkeypatch.setattr(settings, "CONFIGURE_LOGGING", True)
        configure_logging()
        assert structlog.is_configured()
    finally:
        monkeypatch.setattr(settings, "CONFIGURE_LOGGING", True)
        configure_logging()
