from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from giftdrop.domain.ledger import (
    ActionKind,
    GiftDefinition,
    InvoiceAction,
    PurchaseUnit,
    UserProfile,
)


def test_reserve_unit_never_exceeds_total_supply(gifts) -> None:
    gifts.save(
        GiftDefinition(
            id=7,
            display_order=1,
            name={"en": "Rare"},
            unit_price=Decimal("1"),
            settlement_asset="TON",
            total_supply=5,
        )
    )

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: gifts.reserve_unit(7), range(20)))

    assert results.count(True) == 5
    assert gifts.get(7).sold_count == 5
    assert gifts.reserve_unit(7) is False


def test_save_keeps_sold_count(gifts, cake) -> None:
    assert gifts.reserve_unit(cake.id)
    gifts.save(cake)
    assert gifts.get(cake.id).sold_count == 1


def test_decimal_prices_survive_storage(gifts) -> None:
    gifts.save(
        GiftDefinition(
            id=3,
            display_order=3,
            name={"en": "Blue Star"},
            unit_price=Decimal("0.000000000000000001"),
            settlement_asset="ETH",
            total_supply=10,
        )
    )
    assert gifts.get(3).unit_price == Decimal("0.000000000000000001")


def test_promote_invoice_happens_once(actions, cake, people) -> None:
    invoice = actions.add_invoice(
        buyer_user_id=people["buyer"],
        gift_id=cake.id,
        invoice_external_id="inv-42",
        price=cake.unit_price,
        asset=cake.settlement_asset,
        created_at=datetime.now(UTC),
    )
    assert isinstance(actions.find_by_invoice("inv-42"), InvoiceAction)

    unit = actions.promote_invoice("inv-42", "c" * 16)
    assert isinstance(unit, PurchaseUnit)
    assert unit.id == invoice.id
    assert unit.claim_code == "c" * 16

    assert actions.promote_invoice("inv-42", "d" * 16) is None
    assert actions.find_unit_by_code("d" * 16) is None
    assert actions.promote_invoice("unknown", "e" * 16) is None


def test_claim_receiver_has_exactly_one_winner(actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    claimants = list(range(9000, 9016))
    for claimant in claimants:
        users.upsert(UserProfile(id=claimant, first_name=f"u{claimant}"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        wins = list(pool.map(lambda uid: actions.claim_receiver(unit.id, uid), claimants))

    assert wins.count(True) == 1
    winner = claimants[wins.index(True)]
    assert actions.find_unit_by_code(unit.claim_code).receiver_user_id == winner


def test_claim_receiver_refuses_the_buyer(actions, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    assert actions.claim_receiver(unit.id, people["buyer"]) is False
    assert actions.find_unit_by_code(unit.claim_code).receiver_user_id is None


def test_complete_transfer_links_records_and_counts(actions, users, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)
    assert actions.claim_receiver(unit.id, people["friend"])

    send, receive = actions.complete_transfer(unit, people["friend"], datetime.now(UTC))

    stored = actions.find_unit_by_code(unit.claim_code)
    assert stored.linked_send_action_id == send.id
    assert stored.linked_receive_action_id == receive.id
    assert send.linked_receive_action_id == receive.id
    assert receive.linked_send_action_id == send.id
    assert receive.sender_user_id == people["buyer"]
    assert send.receiver_user_id == people["friend"]
    assert users.get(people["friend"]).gifts_received == 1
    assert users.get(people["buyer"]).gifts_received == 0


def test_delivery_ref_is_one_shot(actions, cake, people, buy_unit) -> None:
    unit = buy_unit(people["buyer"], cake)

    first = actions.set_delivery_ref(unit.id, "inline-1")
    assert first is not None and first.delivery_message_ref == "inline-1"
    assert actions.set_delivery_ref(unit.id, "inline-2") is None
    assert actions.find_unit_by_code(unit.claim_code).delivery_message_ref == "inline-1"
    assert actions.list_deliverable_units(people["buyer"], offset=0, limit=10) == []


def test_listings_are_newest_first_and_paginated(actions, cake, people, buy_unit) -> None:
    units = [buy_unit(people["buyer"], cake) for _ in range(5)]

    page = actions.list_deliverable_units(people["buyer"], offset=0, limit=2)
    assert [u.id for u in page] == [units[4].id, units[3].id]
    page = actions.list_deliverable_units(people["buyer"], offset=4, limit=2)
    assert [u.id for u in page] == [units[0].id]

    feed = actions.list_by_user(people["buyer"], [ActionKind.PURCHASE], offset=0, limit=10)
    assert len(feed) == 5


def test_claim_anomalies_are_listed(actions, cake, people, buy_unit) -> None:
    healthy = buy_unit(people["buyer"], cake)
    actions.claim_receiver(healthy.id, people["friend"])
    actions.complete_transfer(healthy, people["friend"], datetime.now(UTC))

    broken = buy_unit(people["buyer"], cake)
    actions.claim_receiver(broken.id, people["stranger"])

    anomalies = actions.list_claim_anomalies(10)
    assert [unit.id for unit in anomalies] == [broken.id]


def test_upsert_keeps_preferences_and_score(users) -> None:
    users.upsert(UserProfile(id=5, first_name="Dan", language_code="ru"))
    assert users.update_preferences(5, locale="en", theme="night")

    user = users.upsert(UserProfile(id=5, first_name="Daniel", language_code="ru"))
    assert user.first_name == "Daniel"
    assert user.locale == "en"
    assert user.theme == "night"
    assert user.gifts_received == 0
    assert users.update_preferences(404, theme="day") is False


def test_search_matches_names_literally(users, people) -> None:
    users.upsert(UserProfile(id=77, first_name="100%_sure"))

    assert [u.id for u in users.search("ali", offset=0, limit=10)] == [people["buyer"]]
    assert [u.id for u in users.search("@carol", offset=0, limit=10)] == [people["stranger"]]
    assert [u.id for u in users.search("%_", offset=0, limit=10)] == [77]


def test_avatar_check_is_compare_and_set(users, people) -> None:
    now = datetime.now(UTC)
    candidates = users.list_avatar_candidates(now, 10)
    assert {c[0] for c in candidates} == set(people.values())

    user_id, checked_at, _file_id = candidates[0]
    assert users.claim_avatar_check(user_id, checked_at, now)
    assert not users.claim_avatar_check(user_id, checked_at, now + timedelta(seconds=1))

    users.store_avatar(user_id, file_id="file-1", photo=b"jpeg")
    assert users.get_photo(user_id) == b"jpeg"
    assert users.get(user_id).has_photo
