from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest import mock

import pytest
from botocore.exceptions import ClientError

from counter_lambda.store import CounterRecord, CounterStore
from tests.conftest import InMemoryTable


def throttled(operation):
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
        operation,
    )


def test_missing_key_reads_as_none(dynamodb_table):
    store = CounterStore(dynamodb_table)
    assert store.get("BasicFunction") is None


def test_first_increment_on_missing_key_returns_one(dynamodb_table):
    store = CounterStore(dynamodb_table)
    assert store.increment("BasicFunction", variant_tag="BasicFunction") == 1


def test_sequential_increments(dynamodb_table):
    store = CounterStore(dynamodb_table)

    values = [store.increment("BasicFunction", variant_tag="BasicFunction") for _ in range(5)]

    assert values == [1, 2, 3, 4, 5]


def test_put_replaces_whole_record(dynamodb_table):
    store = CounterStore(dynamodb_table)
    dynamodb_table.put_item(Item={"Counter": "k", "Count": 7, "Extra": "stale"})

    store.increment("k", variant_tag="OptimizedFunction", snapstart=True, now="2026-01-01T00:00:00+00:00")

    item = dynamodb_table.get_item(Key={"Counter": "k"})["Item"]
    assert item == {
        "Counter": "k",
        "Count": Decimal(8),
        "LastUpdated": "2026-01-01T00:00:00+00:00",
        "LambdaType": "OptimizedFunction",
        "SnapStartEnabled": True,
    }


def test_large_values_survive_round_trip(dynamodb_table):
    store = CounterStore(dynamodb_table)
    big = 2**53 + 1
    store.put(CounterRecord(key="k", value=big, updated_at="t", variant_tag="v"))

    record = store.get("k")

    assert record.value == big
    assert isinstance(record.value, int)
    assert store.increment("k", variant_tag="v") == big + 1


def test_keys_are_independent(dynamodb_table):
    store = CounterStore(dynamodb_table)
    store.increment("a", variant_tag="v")
    store.increment("a", variant_tag="v")

    assert store.increment("b", variant_tag="v") == 1


def test_failed_write_leaves_previous_value(dynamodb_table):
    store = CounterStore(dynamodb_table)
    store.increment("k", variant_tag="v")

    with mock.patch.object(CounterStore, "put", side_effect=throttled("PutItem")):
        with pytest.raises(ClientError):
            store.increment("k", variant_tag="v")

    assert store.get("k").value == 1


def test_failed_read_skips_write():
    table = InMemoryTable()
    table.get_item = mock.Mock(side_effect=throttled("GetItem"))
    store = CounterStore(table)

    with pytest.raises(ClientError):
        store.increment("k", variant_tag="v")

    assert table.put_calls == 0


def test_one_read_and_one_write_per_increment():
    table = InMemoryTable()
    store = CounterStore(table)

    store.increment("k", variant_tag="v")

    assert table.get_calls == 1
    assert table.put_calls == 1


def test_concurrent_increments_may_lose_updates():
    # 읽기와 쓰기 사이에 잠금이 없으므로 결과는 1 이상 K 이하입니다.
    concurrency = 8
    table = InMemoryTable(read_delay=0.02)
    store = CounterStore(table)

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        list(executor.map(lambda _: store.increment("k", variant_tag="v"), range(concurrency)))

    final = store.get("k").value
    assert 1 <= final <= concurrency
    assert table.put_calls == concurrency


def test_from_item_converts_decimal_exactly():
    record = CounterRecord.from_item({"Counter": "k", "Count": Decimal("9007199254740993")})
    assert record.value == 9007199254740993
    assert type(record.value) is int


def test_from_item_rejects_fractional_count():
    with pytest.raises(ValueError):
        CounterRecord.from_item({"Counter": "k", "Count": Decimal("7.5")})
