"""
Kernel test configuration.

Shared fixtures: a small source text in the default notation, a helper to
build an engine over hand-built events, and in-memory persistence.
"""

import pytest

from seqview.kernel.engine import SeqViewEngine
from seqview.kernel.events import make_master
from seqview.kernel.persistence import MemoryKeyValueStore

CHECKOUT_SOURCE = """\
# checkout flow
participant Client as Web Client
participant Gateway
participant Orders
participant Billing

Client->Gateway: POST /checkout ;; {"srcInstanceId": "c1", "dstInstanceId": "g1", "size": 512}
Gateway->Orders: create order ;; {"srcInstanceId": "g1", "dstInstanceId": "o1", "size": 128}
Note over Orders: order 42 pending
Orders->Billing: charge ;; {"srcInstanceId": "o1", "dstInstanceId": "b1", "size": 64} ;; retried once
Billing-->Orders: charged ;; {"srcInstanceId": "b1", "dstInstanceId": "o1", "size": 0}
Orders-->Gateway: order created ;; {"srcInstanceId": "o1", "dstInstanceId": "g1", "size": 96}
Gateway-->Client: 201 Created ;; not json
"""


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def checkout_engine(kv):
    engine = SeqViewEngine(kv)
    result = engine.load_text(CHECKOUT_SOURCE)
    assert result.ok, result.error
    return engine


@pytest.fixture
def checkout_source():
    return CHECKOUT_SOURCE


@pytest.fixture
def engine_over(kv):
    """
    Factory: an engine whose parser returns the given events, whatever the
    text. Engines share the test's key/value store unless given their own.
    """

    def build(events, participants=None, store=None, **kwargs):
        master = make_master(events, participants)
        engine = SeqViewEngine(store if store is not None else kv, parser=lambda _text: master, **kwargs)
        result = engine.load_text("")
        assert result.ok, result.error
        return engine

    return build
