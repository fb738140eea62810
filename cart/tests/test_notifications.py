import logging

from cart.notifications import CartNotificationBus
from cart.owners import GuestOwner, UserOwner
from common.choices import CartAction


def test_publish_reaches_every_subscriber():
    bus = CartNotificationBus()
    seen = []
    bus.subscribe(lambda owner, action: seen.append(("a", owner, action)))
    bus.subscribe(lambda owner, action: seen.append(("b", owner, action)))

    delivered = bus.publish(UserOwner(7), CartAction.ADDED)

    assert delivered == 2
    assert sorted(seen) == [("a", UserOwner(7), "added"), ("b", UserOwner(7), "added")]


def test_unsubscribe_stops_delivery():
    bus = CartNotificationBus()
    seen = []
    unsubscribe = bus.subscribe(lambda owner, action: seen.append(action))
    assert bus.subscriber_count == 1

    unsubscribe()
    bus.publish(GuestOwner("s1"), CartAction.CLEARED)

    assert seen == []
    assert bus.subscriber_count == 0


def test_failing_subscriber_does_not_block_others(caplog):
    bus = CartNotificationBus()
    seen = []

    def broken(owner, action):
        raise RuntimeError("badge backend down")

    bus.subscribe(broken)
    bus.subscribe(lambda owner, action: seen.append(action))

    with caplog.at_level(logging.WARNING, logger="storefront.cart"):
        delivered = bus.publish(GuestOwner("s1"), CartAction.UPDATED)

    assert delivered == 1
    assert seen == ["updated"]
    assert any(r.getMessage() == "cart.subscriber_failed" for r in caplog.records)


def test_buses_are_independent():
    first = CartNotificationBus()
    second = CartNotificationBus()
    seen = []
    first.subscribe(lambda owner, action: seen.append(action))

    second.publish(UserOwner(1), CartAction.MERGED)

    assert seen == []
