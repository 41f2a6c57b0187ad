"""Typed payload used for produce/consume round trips"""

from pulsar.schema import AvroSchema, JsonSchema, Long, Record, String


class Tick(Record):
    """Mirrors the Tick POJO shipped in the broker's api-examples jar"""
    tick_number = Long()
    stock_name = String()
    buy_price = Long()
    sell_price = Long()


def make_tick(index: int) -> Tick:
    """Deterministic record for a given sequence index"""
    return Tick(
        tick_number=index,
        stock_name=f"Stock_{index}",
        buy_price=100 + index,
        sell_price=110 + index,
    )


def schema_for(schema_type: str, record_class=Tick):
    if schema_type == "avro":
        return AvroSchema(record_class)
    if schema_type == "json":
        return JsonSchema(record_class)
    raise ValueError(f"unsupported schema type {schema_type!r}")
