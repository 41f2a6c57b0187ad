"""
Produce/consume round trips through the programmatic client.

A session binds one producer and one consumer to a single topic and
subscription. The consumer subscribes before anything is sent, so every
record produced in the session is delivered to it, in send order.
"""

import logging
from contextlib import ExitStack, contextmanager
from typing import Callable, Iterator, List, Optional

import pulsar

from pulsar_cli_harness.errors import ReceiveTimeout, VerificationError
from pulsar_cli_harness.records import make_tick

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_COUNT = 9


class ClientSession:
    """Client, producer and consumer for one topic/subscription pair"""

    def __init__(self, client, producer, consumer, topic: str, subscription: str):
        self.client = client
        self.producer = producer
        self.consumer = consumer
        self.topic = topic
        self.subscription = subscription

    def send(self, record):
        self.producer.send(record)

    def receive(self, timeout: float):
        """Block up to `timeout` seconds for the next record and acknowledge it.

        Raises pulsar.Timeout when nothing arrives in time.
        """
        message = self.consumer.receive(timeout_millis=int(timeout * 1000))
        self.consumer.acknowledge(message)
        return message.value()


class ProduceConsumeVerifier:
    """Checks ordered, lossless delivery of typed records"""

    def __init__(self, service_url: str, receive_timeout: float = 5.0,
                 client_factory: Optional[Callable] = None):
        self.service_url = service_url
        self.receive_timeout = receive_timeout
        self.client_factory = client_factory or pulsar.Client

    @contextmanager
    def open_session(self, topic: str, schema, subscription: str) -> Iterator[ClientSession]:
        """Yield a session; producer, consumer and client are closed on every exit path"""
        with ExitStack() as resources:
            client = self.client_factory(self.service_url)
            resources.callback(client.close)
            producer = client.create_producer(topic, schema=schema)
            resources.callback(producer.close)
            consumer = client.subscribe(topic, subscription, schema=schema)
            resources.callback(consumer.close)
            logger.debug("session open on %s (subscription %s)", topic, subscription)
            yield ClientSession(client, producer, consumer, topic, subscription)
        logger.debug("session on %s closed", topic)

    def verify_round_trip(self, topic: str, schema, subscription: str,
                          count: int = DEFAULT_MESSAGE_COUNT) -> List:
        """Send records 1..count, then require each one back in the same order"""
        received = []
        with self.open_session(topic, schema, subscription) as session:
            for i in range(1, count + 1):
                session.send(make_tick(i))
            logger.info("produced %d records to %s", count, topic)

            for i in range(1, count + 1):
                expected = make_tick(i)
                try:
                    record = session.receive(self.receive_timeout)
                except pulsar.Timeout as e:
                    raise ReceiveTimeout(topic, i, self.receive_timeout, len(received)) from e
                if record != expected:
                    raise VerificationError(
                        f"record {i} on {topic} out of order or corrupted: "
                        f"expected {expected}, got {record}")
                received.append(record)
        logger.info("consumed %d records from %s in order", len(received), topic)
        return received
