"""
Race safety tests.

Each worker opens its own session, all workers start together behind a
Barrier, and the invariants are checked from a fresh session afterwards.
"""
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from app.core.errors import (
    AlreadyReturnedError,
    AssetVerseError,
    CapacityExceededError,
    ConflictError,
    OutOfStockError,
)
from app.services.affiliation import admit_or_refresh, get_capacity, list_active_employees
from app.services.assignment import list_my_assignments, return_assignment
from app.services.inventory import get_asset
from app.services.requests import approve_request, get_request, reject_request, submit_request
from app.services.subscription import PaymentCompletedEvent, apply_payment_event, list_organization_payments


def run_concurrently(session_factory, num_threads, work):
    """
    Run work(session, index) in num_threads threads released together.

    Returns a list of (index, result or raised AssetVerseError).
    """
    barrier = Barrier(num_threads, timeout=30)

    def worker(index):
        session = session_factory()
        try:
            barrier.wait()
            return index, work(session, index)
        except AssetVerseError as e:
            return index, e
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        return list(executor.map(worker, range(num_threads)))


class TestCapacityUnderContention:

    def test_n_admissions_with_limit_k(self, db, session_factory, make_organization, make_employee):
        limit, num_threads = 3, 8
        organization, _ = make_organization(employee_limit=limit)
        organization_id = organization.id
        employee_ids = [make_employee()[0].id for _ in range(num_threads)]

        results = run_concurrently(
            session_factory,
            num_threads,
            lambda session, i: admit_or_refresh(session, employee_ids[i], organization_id),
        )

        admitted = [r for _, r in results if not isinstance(r, Exception) and r.admitted]
        refused = [r for _, r in results if isinstance(r, CapacityExceededError)]
        assert len(admitted) == limit
        assert len(refused) == num_threads - limit
        assert get_capacity(db, organization_id).current_employee_count == limit
        assert len(list_active_employees(db, organization_id)) == limit

    def test_concurrent_approvals_respect_limit(
        self, db, session_factory, make_organization, make_asset, make_employee
    ):
        limit, num_threads = 2, 6
        organization, admin = make_organization(employee_limit=limit)
        asset = make_asset(organization.id, total_quantity=num_threads)
        request_ids = [submit_request(db, make_employee()[1], asset.id).id for _ in range(num_threads)]
        asset_id, organization_id = asset.id, organization.id

        results = run_concurrently(
            session_factory,
            num_threads,
            lambda session, i: approve_request(session, request_ids[i], admin),
        )

        approved = [r for _, r in results if not isinstance(r, Exception)]
        assert len(approved) == limit
        assert all(isinstance(r, CapacityExceededError) for _, r in results if isinstance(r, Exception))
        db.expire_all()
        assert get_capacity(db, organization_id).current_employee_count == limit
        assert get_asset(db, asset_id).available_quantity == num_threads - limit
        statuses = sorted(get_request(db, request_id).status for request_id in request_ids)
        assert statuses == ["approved"] * limit + ["pending"] * (num_threads - limit)

    def test_same_employee_admitted_concurrently_counts_once(
        self, db, session_factory, make_organization, make_employee
    ):
        organization, _ = make_organization(employee_limit=5)
        organization_id = organization.id
        employee_id = make_employee()[0].id

        run_concurrently(
            session_factory,
            4,
            lambda session, i: admit_or_refresh(session, employee_id, organization_id),
        )

        assert get_capacity(db, organization_id).current_employee_count == 1
        assert len(list_active_employees(db, organization_id)) == 1


class TestResolutionRace:

    def test_exactly_one_resolution_wins(self, db, session_factory, workspace):
        request_id = submit_request(db, workspace.employee, workspace.laptop.id).id
        admin = workspace.admin

        def resolve(session, i):
            if i % 2 == 0:
                return approve_request(session, request_id, admin)
            return reject_request(session, request_id, admin)

        results = run_concurrently(session_factory, 6, resolve)

        winners = [r for _, r in results if not isinstance(r, Exception)]
        losers = [r for _, r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(isinstance(e, ConflictError) for e in losers)

        db.expire_all()
        final = get_request(db, request_id).status
        assignments = list_my_assignments(db, workspace.employee_user.id)
        if final == "approved":
            assert len(assignments) == 1
            assert get_asset(db, workspace.laptop.id).available_quantity == 2
        else:
            assert final == "rejected"
            assert assignments == []
            assert get_asset(db, workspace.laptop.id).available_quantity == 3


class TestInventoryUnderContention:

    def test_last_unit_goes_to_one_approval(self, db, session_factory, make_organization, make_asset, make_employee):
        organization, admin = make_organization(employee_limit=10)
        asset = make_asset(organization.id, total_quantity=1)
        request_ids = [submit_request(db, make_employee()[1], asset.id).id for _ in range(4)]
        asset_id = asset.id

        results = run_concurrently(
            session_factory,
            4,
            lambda session, i: approve_request(session, request_ids[i], admin, reserve_on_approval=True),
        )

        assert len([r for _, r in results if not isinstance(r, Exception)]) == 1
        assert all(isinstance(r, OutOfStockError) for _, r in results if isinstance(r, Exception))
        db.expire_all()
        assert get_asset(db, asset_id).available_quantity == 0

    def test_concurrent_returns_release_once(self, db, session_factory, workspace):
        request = submit_request(db, workspace.employee, workspace.laptop.id)
        assignment_id = approve_request(db, request.id, workspace.admin).assignment.id
        employee = workspace.employee

        results = run_concurrently(
            session_factory,
            5,
            lambda session, i: return_assignment(session, assignment_id, employee),
        )

        returned = [r for _, r in results if not isinstance(r, Exception)]
        assert len(returned) == 1
        assert all(isinstance(r, AlreadyReturnedError) for _, r in results if isinstance(r, Exception))
        db.expire_all()
        record = get_asset(db, workspace.laptop.id)
        assert record.available_quantity == 3
        assert 0 <= record.available_quantity <= record.total_quantity


class TestPaymentRedelivery:

    @pytest.mark.parametrize("num_threads", [2, 8])
    def test_concurrent_redelivery_applies_once(self, db, session_factory, make_organization, make_package, num_threads):
        organization, _ = make_organization(employee_limit=5)
        package = make_package(name="standard", employee_limit=10)
        organization_id, package_id = organization.id, package.id

        event = PaymentCompletedEvent(
            transaction_id="pi_redelivered",
            organization_id=organization_id,
            package_id=package_id,
            amount=Decimal("8.00"),
        )

        results = run_concurrently(session_factory, num_threads, lambda session, i: apply_payment_event(session, event))

        applied = [r for _, r in results if not r.duplicate]
        assert len(applied) == 1
        assert applied[0].capacity_applied
        assert len(list_organization_payments(db, organization_id)) == 1
        assert get_capacity(db, organization_id).employee_limit == 10
