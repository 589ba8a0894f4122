from dataclasses import replace
import pytest
from steelshop import get_db
from steelshop.models.job_order import JobOrderSnapshot
from steelshop.repositories.job_orders import JobOrderRepository, SqlJobOrderRepository
from steelshop.services.lifecycle import apply_transition
from test_utils_seed import ensure_customer


def _new(customer_id, **kw):
    return JobOrderSnapshot(id=None, po_number='PO-REPO', customer_id=customer_id, steel_type='Aluminum',
                            quantity=5, width=10.0, length=20.0, thickness=1.0, **kw)


def test_save_get_and_list_round_trip():
    session = get_db()
    repo = SqlJobOrderRepository(session)
    cust = ensure_customer('Repo Buyer')
    saved = repo.save(_new(cust.id))
    session.commit()
    assert saved.id is not None
    assert repo.get(saved.id).status == 'pending'
    moved = apply_transition(saved, 'cutting', 'supervisor').unwrap()
    repo.save(moved)
    session.commit()
    assert repo.get(saved.id).status == 'cutting'
    assert [o.id for o in repo.list(status='cutting', customer_id=cust.id)] == [saved.id]
    assert repo.list(status='pending', customer_id=cust.id) == []


def test_snapshots_are_immutable():
    snap = _new(1)
    with pytest.raises(AttributeError):
        snap.status = 'cutting'
    assert replace(snap, status='cutting').status == 'cutting'


def test_save_missing_row_raises():
    repo = SqlJobOrderRepository(get_db())
    with pytest.raises(LookupError):
        repo.save(replace(_new(1), id=987654))


def test_base_repository_is_abstract():
    with pytest.raises(TypeError):
        JobOrderRepository()
