"""
Outcome batches are serialized deterministically, in request order.
"""

import json

from src.abstractions.dto.tools import (
    ToolInvocationOutcome,
    ToolInvocationRequest,
    serialize_outcomes,
    serialize_payload,
)


def _req(name, call_id=None):
    return ToolInvocationRequest(name=name, arguments={}, call_id=call_id)


def test_success_and_failure_wire_shapes():
    ok = ToolInvocationOutcome.success(_req("getAvailableMargin"), {"availableMargin": 1000})
    bad = ToolInvocationOutcome.failed(_req("cancelOrder"), "ToolExecutionFailure", "order not found")

    assert ok.to_wire() == {"functionName": "getAvailableMargin", "response": {"result": {"availableMargin": 1000}}}
    assert bad.to_wire() == {"functionName": "cancelOrder", "response": {"error": "Execution failed: order not found"}}


def test_serialization_is_order_preserving_and_key_sorted():
    batch = [
        ToolInvocationOutcome.success(_req("b"), {"z": 1, "a": 2}),
        ToolInvocationOutcome.success(_req("a"), None),
    ]
    text = serialize_outcomes(batch)

    assert text == serialize_outcomes(list(batch))
    decoded = json.loads(text)
    assert [item["functionName"] for item in decoded] == ["b", "a"]
    assert text.index('"a": 2') < text.index('"z": 1')
    assert decoded[1]["response"] == {"result": None}


def test_empty_batch_is_an_empty_array():
    assert serialize_outcomes([]) == "[]"


def test_unserializable_payload_falls_back_to_str():
    class Price:
        def __str__(self):
            return "Price(42)"

    outcome = ToolInvocationOutcome.success(_req("quote"), {"price": Price()})
    assert json.loads(serialize_outcomes([outcome]))[0]["response"]["result"] == {"price": "Price(42)"}


def test_serialize_payload_passes_strings_through():
    assert serialize_payload("Held for 10 seconds.") == "Held for 10 seconds."
    assert serialize_payload({"b": 1, "a": [1, 2]}) == '{"a": [1, 2], "b": 1}'


def test_ok_is_decided_by_failure_not_payload():
    assert ToolInvocationOutcome.success(_req("noop"), None).ok
    assert not ToolInvocationOutcome.failed(_req("x"), "UnknownTool", "Tool 'x' not found").ok
