import queue
import threading

import pytest

from subnet_discovery.core.channel import ChannelClosedError, ResultChannel


def test_items_then_close():
    channel = ResultChannel()
    channel.publish("a")
    channel.publish("b")
    channel.close()

    assert list(channel) == ["a", "b"]
    assert channel.published == 2
    assert channel.closed


def test_receive_after_close_keeps_returning_none():
    channel = ResultChannel()
    channel.close()
    assert channel.receive() is None
    assert channel.receive() is None


def test_publish_after_close_raises():
    channel = ResultChannel()
    channel.close()
    with pytest.raises(ChannelClosedError):
        channel.publish("late")


def test_double_close_raises():
    channel = ResultChannel()
    channel.close()
    with pytest.raises(ChannelClosedError):
        channel.close()


def test_none_cannot_be_published():
    channel = ResultChannel()
    with pytest.raises(ValueError):
        channel.publish(None)


def test_receive_timeout():
    channel = ResultChannel()
    with pytest.raises(queue.Empty):
        channel.receive(timeout=0.01)


def test_many_producers_one_consumer():
    channel = ResultChannel()
    producers = 8
    per_producer = 50

    def produce(offset):
        for i in range(per_producer):
            channel.publish(offset * per_producer + i)

    threads = [threading.Thread(target=produce, args=(n,)) for n in range(producers)]
    for thread in threads:
        thread.start()

    def close_when_done():
        for thread in threads:
            thread.join()
        channel.close()

    threading.Thread(target=close_when_done).start()

    received = list(channel)
    assert sorted(received) == list(range(producers * per_producer))
