import pytest

from fake_miner import FakeMiner


@pytest.fixture
def fake_miner():
    miners = []

    def start(handler):
        miner = FakeMiner(handler)
        miners.append(miner)
        return miner

    yield start
    for miner in miners:
        miner.close()
