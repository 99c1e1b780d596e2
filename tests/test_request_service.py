"""
Request creation and the request aggregate
"""
import pytest

from cardops.core.exceptions import NotFound, StorageError, ValidationError
from cardops.models import Card, GradingRequest, ProgressStep, User
from cardops.models.progress import StepStatus
from cardops.services.progress_service import ProgressService
from cardops.services.request_service import RequestService
from tests.conftest import make_submission


class TestCreateRequest:

    def test_scenario_two_cards_usa_normal(self, db):
        request = RequestService.create_request(db, make_submission())

        assert request.status == "pending"
        assert request.current_step == 1
        assert len(request.cards) == 2
        assert [s.step_number for s in request.steps] == [1, 2, 3, 4, 5, 6]
        assert request.steps[0].status == StepStatus.COMPLETED.value
        assert request.steps[0].updated_by == "system"
        assert all(s.status == StepStatus.PENDING.value for s in request.steps[1:])

    def test_cards_keep_submission_order(self, db):
        names = ("Lugia", "Mew", "Eevee", "Snorlax")
        request = RequestService.create_request(db, make_submission(cards=names))

        fetched = RequestService.get_request_aggregate(db, request.id)
        assert [c.card_name for c in fetched.cards] == list(names)
        assert [c.position for c in fetched.cards] == [0, 1, 2, 3]
        assert len(fetched.steps) == 6

    def test_totals_default_to_card_sums(self, db):
        request = RequestService.create_request(db, make_submission())

        assert float(request.total_declared_value) == 20000
        assert float(request.total_estimated_grading_fee) == 6000

    def test_zero_cards_allowed(self, db):
        request = RequestService.create_request(db, make_submission(cards=()))

        assert request.cards == []
        assert len(request.steps) == 6

    def test_existing_user_is_reused(self, db):
        first = RequestService.create_request(db, make_submission(email="Repeat@Example.com"))
        second = RequestService.create_request(db, make_submission(email="repeat@example.com "))

        assert first.user_id == second.user_id
        assert db.query(User).count() == 1
        assert db.query(User).first().email == "repeat@example.com"

    def test_missing_email_rejected(self, db):
        with pytest.raises(ValidationError):
            RequestService.create_request(db, make_submission(email="   "))
        assert db.query(GradingRequest).count() == 0
        assert db.query(User).count() == 0

    def test_malformed_email_rejected(self, db):
        with pytest.raises(ValidationError):
            RequestService.create_request(db, make_submission(email="not-an-email"))

    def test_country_or_plan_required(self, db):
        with pytest.raises(ValidationError):
            RequestService.create_request(db, make_submission(country=None, plan_type=None))

        request = RequestService.create_request(db, make_submission(country=None))
        assert request.plan_type == "normal"

    def test_storage_failure_keeps_nothing_but_the_user(self, db, monkeypatch):
        original = ProgressService.initialize_steps

        def initialize_with_duplicate(db, request, now=None):
            steps = original(db, request, now)
            request.steps.append(ProgressStep(step_number=1, step_name="dup", status="pending", notes=""))
            return steps

        monkeypatch.setattr(ProgressService, "initialize_steps", staticmethod(initialize_with_duplicate))

        with pytest.raises(StorageError):
            RequestService.create_request(db, make_submission())

        assert db.query(GradingRequest).count() == 0
        assert db.query(Card).count() == 0
        assert db.query(ProgressStep).count() == 0
        # The user is committed before the request transaction starts
        assert db.query(User).count() == 1


class TestRequestQueries:

    def test_get_unknown_request(self, db):
        with pytest.raises(NotFound):
            RequestService.get_request_aggregate(db, "does-not-exist")

    def test_list_requests_filters_by_status(self, db):
        first = RequestService.create_request(db, make_submission())
        RequestService.create_request(db, make_submission())
        RequestService.update_request_status(db, first.id, "in_progress")

        items, total = RequestService.list_requests(db, status="in_progress")
        assert total == 1
        assert items[0].id == first.id

        items, total = RequestService.list_requests(db)
        assert total == 2

    def test_list_user_requests(self, db):
        RequestService.create_request(db, make_submission(email="a@example.com"))
        RequestService.create_request(db, make_submission(email="a@example.com"))
        RequestService.create_request(db, make_submission(email="b@example.com"))

        assert len(RequestService.list_user_requests(db, "A@example.com")) == 2
        assert RequestService.list_user_requests(db, "nobody@example.com") == []

    def test_update_status_rejects_unknown_value(self, db):
        request = RequestService.create_request(db, make_submission())
        with pytest.raises(ValidationError):
            RequestService.update_request_status(db, request.id, "shipped")

    def test_update_status_leaves_steps_alone(self, db):
        request = RequestService.create_request(db, make_submission())
        updated = RequestService.update_request_status(db, request.id, "completed", admin_notes="done")

        assert updated.status == "completed"
        assert updated.admin_notes == "done"
        assert updated.current_step == 1
        assert [s.status for s in updated.steps] == ["completed"] + ["pending"] * 5

    def test_update_user(self, db):
        request = RequestService.create_request(db, make_submission())
        user = RequestService.update_user(db, request.user_id, phone="080-1111-2222")

        assert user.phone == "080-1111-2222"
        assert user.name == "Aki Tanaka"

        with pytest.raises(NotFound):
            RequestService.update_user(db, 9999, name="x")

    def test_public_progress_hides_deleted_requests(self, db):
        request = RequestService.create_request(db, make_submission())
        progress = RequestService.get_public_progress(db, request.id)
        assert progress.customer_name == "Aki Tanaka"
        assert len(progress.steps) == 6

        RequestService.update_request_status(db, request.id, "deleted")
        with pytest.raises(NotFound):
            RequestService.get_public_progress(db, request.id)
