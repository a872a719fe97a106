import pytest
from sqlalchemy import event, func, select

from app.models import InventoryRecord
from app.models.inventory import ProductForm
from app.services.inventory import (
    ProductNotFound,
    RecordNotFound,
    StockStatus,
    compute_status,
    get_or_create,
    get_record,
    record_status,
)


@pytest.mark.parametrize(
    ("current", "ideal", "expected"),
    [
        (0, 5, StockStatus.CRITICAL),
        (-1, 5, StockStatus.CRITICAL),
        (1, 5, StockStatus.LOW),
        (4, 5, StockStatus.LOW),
        (5, 5, StockStatus.NORMAL),
        (12, 5, StockStatus.NORMAL),
        (1, 1, StockStatus.NORMAL),
    ],
)
def test_compute_status_boundaries(current, ideal, expected):
    assert compute_status(current, ideal) == expected


def test_get_or_create_initializes_zeroed_record(db_session, club, make_product):
    product = make_product(club, form=ProductForm.PREPARED, portions=12, portion_size="30g")

    lookup = get_or_create(db_session, product.id, club.id)
    db_session.commit()

    assert lookup.created is True
    record = lookup.record
    assert (record.sealed, record.prep_units, record.current_portions) == (0, 0, 0)
    assert record.portions_per_unit == 12
    assert record.portion_size == "30g"
    assert record.portion_price == product.portion_price


def test_get_or_create_is_idempotent(db_session, club, make_product):
    product = make_product(club)

    first = get_or_create(db_session, product.id, club.id)
    db_session.commit()
    second = get_or_create(db_session, product.id, club.id)

    assert second.created is False
    assert second.record.id == first.record.id


def test_portions_per_unit_is_not_resynced(db_session, club, make_product):
    product = make_product(club, form=ProductForm.PREPARED, portions=20)
    get_or_create(db_session, product.id, club.id)
    db_session.commit()

    product.portions = 30
    db_session.commit()

    assert get_or_create(db_session, product.id, club.id).record.portions_per_unit == 20


def test_get_or_create_unknown_product(db_session, club):
    with pytest.raises(ProductNotFound) as excinfo:
        get_or_create(db_session, 4242, club.id)
    assert excinfo.value.status_code == 404


def test_get_record_does_not_create(db_session, club, make_product):
    product = make_product(club)

    with pytest.raises(RecordNotFound) as excinfo:
        get_record(db_session, product.id, club.id)

    assert excinfo.value.as_detail()["code"] == "RECORD_NOT_FOUND"
    with pytest.raises(RecordNotFound):
        get_record(db_session, product.id, club.id)


def test_record_status_reports_only_relevant_axes(db_session, club, make_product):
    sealed_product = make_product(club, form=ProductForm.SEALED)
    prepared_product = make_product(club, form=ProductForm.PREPARED, name="Oats", portions=10)
    sealed_record = get_or_create(db_session, sealed_product.id, club.id).record
    prepared_record = get_or_create(db_session, prepared_product.id, club.id).record

    sealed_status = record_status(sealed_record, ProductForm.SEALED, 5)
    prepared_status = record_status(prepared_record, ProductForm.PREPARED, 5)

    assert sealed_status.sealed == StockStatus.CRITICAL
    assert sealed_status.preparation is None
    assert prepared_status.sealed is None
    assert prepared_status.preparation == StockStatus.CRITICAL
    assert prepared_status.worst == StockStatus.CRITICAL


def test_get_or_create_returns_row_inserted_by_another_writer(file_sessions, seeded):
    _, club_id, product_id = seeded
    mine = file_sessions()
    theirs = file_sessions()

    def insert_first(session, flush_context, instances):
        winner = InventoryRecord(
            product_id=product_id,
            club_id=club_id,
            sealed=3,
            prep_units=0,
            portions_per_unit=0,
            current_portions=0,
        )
        theirs.add(winner)
        theirs.commit()

    event.listen(mine, "before_flush", insert_first, once=True)
    try:
        lookup = get_or_create(mine, product_id, club_id, lock=True)

        assert lookup.created is False
        assert lookup.record.sealed == 3
        count = mine.scalar(select(func.count(InventoryRecord.id)).where(InventoryRecord.product_id == product_id))
        assert count == 1
    finally:
        mine.close()
        theirs.close()
