import gc
from types import SimpleNamespace

import pytest

import workflow_engine as wf
from document_store import StoreError
from workflow_service import WorkflowService

TODAY = "10/05/2024"

BRIEF = {"name": "Hook A", "landingPage": "Product page", "concept": "Before / after",
         "target": "Dog owners"}


@pytest.fixture
def strategy_id(service):
    return service.add_strategy("Pet filter", "UGC", "Dogs shedding")


def push_to_completed(service, variant_id):
    service.save_script_link(variant_id, "https://docs/script")
    service.change_status(variant_id, wf.READY_TO_EDIT, wf.STRATEGIST, TODAY)
    service.accept_variant(variant_id, TODAY)
    service.save_video_link(variant_id, "https://drive/video")
    service.change_status(variant_id, wf.COMPLETED, wf.EDITOR, TODAY)


class TestSignals:
    def test_subscription_clears_loading(self, service):
        assert service.loading is False
        assert service.connected is True
        assert service.error is None

    def test_snapshot_follows_writes(self, service, strategy_id):
        assert [s.id for s in service.strategies] == [strategy_id]
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        assert [v.id for v in service.get_strategy(strategy_id).variants] == [variant_id]

    def test_other_services_see_writes_after_refresh(self, store, service, strategy_id):
        other = WorkflowService(store)
        other.create_variant(strategy_id, BRIEF, TODAY)
        service.refresh()
        assert len(service.variant_docs) == 1
        other.close()

    def test_store_failure_sets_error_and_reraises(self, service, strategy_id, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreError("database is locked")

        monkeypatch.setattr(service.store, "create_document", broken)
        with pytest.raises(StoreError):
            service.add_strategy("Pet filter", "UGC", "Another")
        assert service.error == "database is locked"

    def test_successful_write_clears_error(self, service, strategy_id):
        service.error = "old failure"
        service.update_strategy(strategy_id, "Pet filter", "Static", "Dogs shedding")
        assert service.error is None
        assert service.get_strategy(strategy_id).format == "Static"


class TestPerSessionServices:
    def test_error_stays_with_the_failing_service(self, store, service):
        other = WorkflowService(store)
        with pytest.raises(StoreError):
            other.delete_variant("nope")
        assert other.error is not None
        assert service.error is None
        service.refresh()
        assert service.error is None
        other.close()

    def test_successful_refresh_clears_error(self, store):
        failing = WorkflowService(store)
        with pytest.raises(StoreError):
            failing.delete_variant("nope")
        failing.refresh()
        assert failing.error is None
        failing.close()

    def test_close_removes_listeners(self, store):
        before = store.listener_count("variants")
        svc = WorkflowService(store)
        assert store.listener_count("variants") == before + 1
        svc.close()
        assert store.listener_count("variants") == before

    def test_collected_service_leaves_the_store(self, store):
        before = store.listener_count("strategies")
        svc = WorkflowService(store)
        del svc
        gc.collect()
        assert store.listener_count("strategies") == before
        store.create_document("strategies", {"product": "A"})

    def test_each_session_gets_its_own_service(self, store, monkeypatch):
        from common import data_access

        monkeypatch.setattr(data_access, "_open_store", lambda db_file: store)
        first_session = SimpleNamespace(session_state={})
        second_session = SimpleNamespace(session_state={})

        monkeypatch.setattr(data_access, "st", first_session)
        first = data_access.get_workflow_service()
        assert data_access.get_workflow_service() is first

        monkeypatch.setattr(data_access, "st", second_session)
        second = data_access.get_workflow_service()
        assert second is not first
        assert second.store is first.store

        with pytest.raises(StoreError):
            first.delete_variant("nope")
        assert second.error is None
        monkeypatch.setattr(data_access, "st", first_session)
        assert data_access.get_workflow_service().error is None
        first.close()
        second.close()


class TestValidationBeforeWrite:
    def test_refused_action_writes_nothing(self, service, store, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        writes_before = len(store.get_change_log())
        with pytest.raises(wf.WorkflowValidationError):
            service.change_status(variant_id, wf.READY_TO_EDIT, wf.STRATEGIST, TODAY)
        assert len(store.get_change_log()) == writes_before
        assert service.get_variant(variant_id).status == wf.IN_PROGRESS

    def test_unknown_variant(self, service):
        with pytest.raises(wf.WorkflowValidationError):
            service.accept_variant("404")

    def test_invalid_strategy_is_refused(self, service):
        with pytest.raises(wf.WorkflowValidationError):
            service.add_strategy("", "UGC", "no product")
        assert service.strategy_docs == []

    def test_no_op_status_change_writes_nothing(self, service, store, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        push_to_completed(service, variant_id)
        writes_before = len(store.get_change_log())
        service.change_status(variant_id, wf.COMPLETED, wf.EDITOR, TODAY)
        assert len(store.get_change_log()) == writes_before


class TestPipeline:
    def test_happy_path_to_live(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, "01/05/2024")
        push_to_completed(service, variant_id)
        assert [v.id for v in service.va_review_queue()] == [variant_id]

        service.approve_variant(variant_id)
        service.change_status(variant_id, wf.LIVE, wf.VA, "12/05/2024")
        service.set_review_status(variant_id, wf.NEEDS_SPEND)

        v = service.get_variant(variant_id)
        assert v.status == wf.LIVE
        assert v.created_date == "01/05/2024"
        assert v.review_date == TODAY
        assert v.edit_date == TODAY
        assert v.comp_date == TODAY
        assert v.launch_date == "12/05/2024"
        assert v.review_status == wf.NEEDS_SPEND
        assert [x.id for x in service.live_ads_queue()] == [variant_id]

    def test_editor_rejection_lands_back_with_strategist(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, dict(BRIEF, scriptLink="s", status=wf.READY_TO_EDIT),
                                            TODAY)
        assert [v.id for v in service.approval_queue()] == [variant_id]

        service.reject_variant(variant_id, wf.EDITOR, "Hook is weak", today=TODAY)
        v = service.get_variant(variant_id)
        assert wf.effective_status(v) == wf.IN_PROGRESS
        assert v.rejection_history[-1].destination == wf.STRATEGIST
        assert service.approval_queue() == []
        assert not wf.can_delete_variant(v)

    def test_va_rejection_to_editor_keeps_edit_date(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        push_to_completed(service, variant_id)
        service.reject_variant(variant_id, wf.VA, "Re-cut the intro", wf.EDITOR, "15/05/2024")

        v = service.get_variant(variant_id)
        assert v.edit_date == TODAY
        assert v.review_date == "15/05/2024"
        assert v.comp_date == ""
        assert [x.id for x in service.production_queue()] == [variant_id]
        assert len(wf.editor_feedback(v)) == 1


class TestDeletion:
    def test_cascade_delete_removes_variants(self, service, store, strategy_id):
        other = service.add_strategy("Pet filter", "Static", "Cats")
        service.create_variant(strategy_id, BRIEF, TODAY)
        service.create_variant(strategy_id, dict(BRIEF, name="Hook B"), TODAY)
        kept = service.create_variant(other, BRIEF, TODAY)

        service.delete_strategy(strategy_id)

        assert [d["id"] for d in service.strategy_docs] == [other]
        assert [d["id"] for d in service.variant_docs] == [kept]

    def test_cascade_delete_of_missing_strategy_keeps_variants(self, service, store, strategy_id):
        service.create_variant(strategy_id, BRIEF, TODAY)
        store.delete_document("strategies", strategy_id)
        with pytest.raises(StoreError):
            service.delete_strategy(strategy_id)
        assert service.error is not None
        assert len(store.list_documents("variants")) == 1

    def test_guarded_removal(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        push_to_completed(service, variant_id)
        with pytest.raises(wf.WorkflowValidationError):
            service.remove_variant(variant_id)
        with pytest.raises(wf.WorkflowValidationError):
            service.remove_strategy(strategy_id)
        assert len(service.variant_docs) == 1

    def test_pristine_rows_can_be_removed(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        service.remove_variant(variant_id)
        service.remove_strategy(strategy_id)
        assert service.strategy_docs == [] and service.variant_docs == []

    def test_admin_delete_bypasses_guard(self, service, strategy_id):
        variant_id = service.create_variant(strategy_id, BRIEF, TODAY)
        push_to_completed(service, variant_id)
        service.delete_variant(variant_id)
        assert service.variant_docs == []

    def test_deleting_a_missing_variant_reports_store_error(self, service):
        with pytest.raises(StoreError):
            service.delete_variant("404")
        assert service.error is not None
