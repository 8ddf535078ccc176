"""
Tests for the parcel registry.

Covers creation, status transitions, payment on delivery, status history
recording and the events queued for the destination office.
"""

import pytest

from gk_express.app.core.exceptions import InternalError, NotFoundError, ValidationError
from gk_express.app.realtime.events import EventName
from gk_express.app.schemas.parcel import ParcelCreate
from gk_express.app.services import audit
from gk_express.app.services.audit import StrictAuditSink
from gk_express.app.services.directory import Directory
from gk_express.app.services.parcel_registry import ParcelRegistry


def new_parcel(offices, **overrides):
    data = {
        "sender_name": "Awa Koné",
        "sender_phone": "+225 07 00 00 00",
        "receiver_name": "Jean Dupont",
        "receiver_phone": "+33 6 00 00 00 00",
        "destination": "12 rue de Rivoli, Paris",
        "price": 45.0,
        "origin_office_id": offices.abidjan,
        "destination_office_id": offices.paris,
    }
    data.update(overrides)
    return ParcelCreate(**data)


async def test_create_parcel_starts_as_created(registry, db_session, offices, users):
    parcel = await registry.create(new_parcel(offices), created_by_user_id=users.abidjan_agent["user_id"])

    assert parcel.status == "created"
    assert parcel.is_paid is False
    assert parcel.paid_at_office_id is None
    assert parcel.created_by_user_id == users.abidjan_agent["user_id"]

    history = await audit.list_for_parcel(db_session, parcel.id)
    assert len(history) == 1
    assert history[0].old_status is None
    assert history[0].new_status == "created"
    assert history[0].office_id == offices.abidjan


async def test_create_paid_parcel_is_paid_at_origin(registry, offices):
    parcel = await registry.create(new_parcel(offices, is_paid=True))

    assert parcel.is_paid is True
    assert parcel.paid_at_office_id == offices.abidjan


@pytest.mark.parametrize("field", ["sender_name", "receiver_name", "destination", "destination_office_id"])
async def test_create_requires_fields(registry, offices, field):
    with pytest.raises(ValidationError) as exc_info:
        await registry.create(new_parcel(offices, **{field: None}))

    assert field in exc_info.value.details["missing"]


@pytest.mark.parametrize("field", ["origin_office_id", "destination_office_id"])
async def test_create_rejects_unknown_office(registry, events, offices, field):
    with pytest.raises(NotFoundError) as exc_info:
        await registry.create(new_parcel(offices, **{field: "no-such-office"}))

    assert exc_info.value.details == {"resource": "Office", "id": "no-such-office"}
    assert await registry.list() == []
    assert len(events) == 0


async def test_create_queues_new_parcel_for_destination(registry, events, offices):
    parcel = await registry.create(new_parcel(offices))

    queued = events.drain()
    assert len(queued) == 1
    assert queued[0].name == EventName.NEW_PARCEL
    assert queued[0].office_id == offices.paris
    assert queued[0].payload == {
        "parcelId": parcel.id,
        "senderName": "Awa Koné",
        "destination": "12 rue de Rivoli, Paris",
        "originOfficeId": offices.abidjan,
        "destinationOfficeId": offices.paris,
    }


async def test_same_origin_and_destination_is_accepted(registry, offices):
    parcel = await registry.create(new_parcel(offices, destination_office_id=offices.abidjan))
    assert parcel.origin_office_id == parcel.destination_office_id


async def test_update_records_history(registry, db_session, offices, users):
    parcel = await registry.create(new_parcel(offices))

    updated = await registry.update_status(
        parcel.id,
        "In_Transit",
        notes="Left Abidjan",
        acting_user_id=users.abidjan_agent["user_id"],
        acting_office_id=offices.abidjan,
    )

    assert updated.status == "in_transit"
    history = await audit.list_for_parcel(db_session, parcel.id)
    assert [(h.old_status, h.new_status) for h in history] == [
        ("created", "in_transit"),
        (None, "created"),
    ]
    assert history[0].notes == "Left Abidjan"
    assert history[0].changed_by_user_id == users.abidjan_agent["user_id"]


async def test_update_to_same_status_records_nothing(registry, db_session, offices):
    parcel = await registry.create(new_parcel(offices))

    updated = await registry.update_status(parcel.id, "CREATED")

    assert updated.status == "created"
    assert len(await audit.list_for_parcel(db_session, parcel.id)) == 1


async def test_delivering_unpaid_parcel_marks_it_paid_at_destination(registry, offices):
    parcel = await registry.create(new_parcel(offices))

    delivered = await registry.update_status(parcel.id, "delivered", acting_office_id=offices.paris)

    assert delivered.is_paid is True
    assert delivered.paid_at_office_id == offices.paris


async def test_delivering_prepaid_parcel_keeps_origin_payment(registry, offices):
    parcel = await registry.create(new_parcel(offices, is_paid=True))

    delivered = await registry.update_status(parcel.id, "delivered")

    assert delivered.paid_at_office_id == offices.abidjan


async def test_repeat_delivery_changes_nothing(registry, db_session, offices):
    parcel = await registry.create(new_parcel(offices))
    await registry.update_status(parcel.id, "delivered")

    again = await registry.update_status(parcel.id, "delivered")

    assert again.is_paid is True
    assert again.paid_at_office_id == offices.paris
    assert len(await audit.list_for_parcel(db_session, parcel.id)) == 2


async def test_full_journey(registry, db_session, offices):
    parcel = await registry.create(new_parcel(offices))
    for status in ("picked_up", "in_transit", "arrived_at_destination", "delivered"):
        await registry.update_status(parcel.id, status)

    history = await audit.list_for_parcel(db_session, parcel.id)
    assert [h.new_status for h in history] == [
        "delivered", "arrived_at_destination", "in_transit", "picked_up", "created"
    ]
    assert [h.old_status for h in history] == [
        "arrived_at_destination", "in_transit", "picked_up", "created", None
    ]


async def test_backward_transition_is_allowed(registry, db_session, offices):
    parcel = await registry.create(new_parcel(offices))
    await registry.update_status(parcel.id, "in_transit")

    corrected = await registry.update_status(parcel.id, "picked_up", notes="Scanned too early")

    assert corrected.status == "picked_up"
    history = await audit.list_for_parcel(db_session, parcel.id)
    assert (history[0].old_status, history[0].new_status) == ("in_transit", "picked_up")


@pytest.mark.parametrize("status", [None, "", "lost"])
async def test_update_rejects_missing_or_unknown_status(registry, offices, status):
    parcel = await registry.create(new_parcel(offices))

    with pytest.raises(ValidationError):
        await registry.update_status(parcel.id, status)


async def test_update_unknown_parcel(registry, offices):
    with pytest.raises(NotFoundError):
        await registry.update_status("no-such-parcel", "delivered")


async def test_get_unknown_parcel(registry, offices):
    with pytest.raises(NotFoundError):
        await registry.get("no-such-parcel")


async def test_history_failure_does_not_fail_update(registry, db_session, offices, mocker):
    parcel = await registry.create(new_parcel(offices))
    mocker.patch("gk_express.app.services.audit.append", side_effect=RuntimeError("ledger down"))

    updated = await registry.update_status(parcel.id, "picked_up")

    assert updated.status == "picked_up"
    mocker.stopall()
    stored = await registry.get(parcel.id)
    assert stored.status == "picked_up"
    assert len(await audit.list_for_parcel(db_session, parcel.id)) == 1


async def test_strict_sink_surfaces_history_failure(db_session, events, offices, mocker):
    registry = ParcelRegistry(db_session, Directory(db_session), StrictAuditSink(), events)
    parcel = await registry.create(new_parcel(offices))
    mocker.patch("gk_express.app.services.audit.append", side_effect=RuntimeError("ledger down"))

    with pytest.raises(InternalError):
        await registry.update_status(parcel.id, "picked_up")

    mocker.stopall()
    # The status change itself was already committed
    assert (await registry.get(parcel.id)).status == "picked_up"


async def test_list_filters_by_office_newest_first(registry, offices):
    first = await registry.create(new_parcel(offices))
    second = await registry.create(new_parcel(offices, origin_office_id=offices.paris,
                                              destination_office_id=offices.dakar))
    unrelated = await registry.create(new_parcel(offices, destination_office_id=offices.dakar))

    paris = await registry.list(office_id=offices.paris)
    assert [p.id for p in paris] == [second.id, first.id]

    everything = await registry.list()
    assert [p.id for p in everything] == [unrelated.id, second.id, first.id]
