import pytest
from loguru import logger

from bybitbot.core.errors import ExchangeError
from tests.stubs import StubExchange


@pytest.fixture
def stub_exchange():
    return StubExchange()


@pytest.fixture
def rejecting_exchange():
    return StubExchange(order=ExchangeError("ab not enough for new order", ret_code=110007))


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda msg: records.append(msg.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
