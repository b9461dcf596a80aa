import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def silence_loguru():
    logger.remove()
    logger.add(lambda message: None)
    yield
