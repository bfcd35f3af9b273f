import datetime

import pytest
from sqlalchemy import DateTime
from sqlmodel import Session, SQLModel, create_engine, select

from character_journal.models import BehaviorRecord, CharacterLog, LogStatus, Mission, utc_now
from character_journal.services.behavior_service import attribute_validated_log
from character_journal.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from character_journal.services.workflow_service import DailyLogWorkflow
from conftest import LOG_DATE, FixedClock, RecordingNotifier, make_activity, seed_directory


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def workflow(db, notifier):
    return DailyLogWorkflow(
        db,
        notify_fn=notifier,
        attribute_score_fn=lambda log, teacher_id: attribute_validated_log(db, log, teacher_id),
        now_fn=FixedClock(),
    )


def _submitted_log(workflow, directory, log_date=LOG_DATE):
    actors = directory.actors
    workflow.submit_plan(actors.S1, directory.ids["S1"], log_date, make_activity())
    return workflow.submit_execution(actors.S1, directory.ids["S1"], log_date, make_activity(sport_activity="Futsal"))


def test_plan_submission_creates_draft_log(workflow, directory):
    log = workflow.submit_plan(directory.actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    assert log.id is not None
    assert log.status == LogStatus.DRAFT.value
    assert log.plan_submitted_at is not None
    assert log.plan["sport_activity"] == "Jogging"
    assert log.execution is None
    assert log.execution_submitted_at is None


def test_execution_submission_keeps_draft_and_notifies_parent(workflow, directory, notifier):
    log = _submitted_log(workflow, directory)

    assert log.status == LogStatus.DRAFT.value
    assert log.execution["sport_activity"] == "Futsal"
    assert log.execution_submitted_at > log.plan_submitted_at
    assert notifier.calls == [("parent", directory.ids["S1"], LOG_DATE, LogStatus.DRAFT.value)]


def test_full_pipeline_reaches_teacher_validated(workflow, directory, notifier, db):
    actors = directory.actors
    log = _submitted_log(workflow, directory)

    approved = workflow.approve(actors.P1, log.id)
    assert approved.status == LogStatus.PARENT_APPROVED.value
    assert approved.approved_by == directory.ids["P1"]
    assert approved.approved_at is not None

    validated = workflow.validate(actors.T1, log.id)
    assert validated.status == LogStatus.TEACHER_VALIDATED.value
    assert validated.validated_by == directory.ids["T1"]

    with pytest.raises(ConflictError) as approve_again:
        workflow.approve(actors.P1, log.id)
    assert approve_again.value.current_status == LogStatus.TEACHER_VALIDATED.value

    with pytest.raises(ConflictError):
        workflow.validate(actors.T1, log.id)

    assert [call[0] for call in notifier.calls] == ["parent", "teacher", "parent"]
    assert notifier.calls[-1][3] == LogStatus.TEACHER_VALIDATED.value

    scores = db.exec(select(BehaviorRecord)).all()
    assert len(scores) == 1
    assert scores[0].contributor_role == "homeroom_teacher"
    assert scores[0].score == 80


def test_second_plan_is_rejected_and_first_content_kept(workflow, directory):
    actors = directory.actors
    workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    with pytest.raises(ConflictError) as exc_info:
        workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity(sport_activity="Berenang"))

    assert exc_info.value.current_status == LogStatus.DRAFT.value
    log = workflow.get_by_date(actors.S1, directory.ids["S1"], LOG_DATE)
    assert log.plan["sport_activity"] == "Jogging"


def test_second_execution_is_rejected(workflow, directory):
    _submitted_log(workflow, directory)

    with pytest.raises(ConflictError):
        workflow.submit_execution(directory.actors.S1, directory.ids["S1"], LOG_DATE, make_activity())


def test_execution_before_plan_never_creates_log(workflow, directory, db):
    with pytest.raises(NotFoundError):
        workflow.submit_execution(directory.actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    assert db.exec(select(CharacterLog)).all() == []


@pytest.mark.parametrize(
    "field",
    [
        "wake_up_time",
        "worship_activities",
        "sport_activity",
        "meal_description",
        "study_activities",
        "social_activities",
        "sleep_time",
    ],
)
def test_each_required_habit_gates_plan_submission(workflow, directory, db, field):
    payload = make_activity()
    payload.pop(field)

    with pytest.raises(ValidationError) as exc_info:
        workflow.submit_plan(directory.actors.S1, directory.ids["S1"], LOG_DATE, payload)

    assert field in exc_info.value.fields
    assert db.exec(select(CharacterLog)).all() == []


def test_empty_worship_reports_both_worship_fields(workflow, directory):
    payload = make_activity(worship_activities=[], worship_detail="")

    with pytest.raises(ValidationError) as exc_info:
        workflow.submit_plan(directory.actors.S1, directory.ids["S1"], LOG_DATE, payload)

    assert exc_info.value.fields == ["worship_activities", "worship_detail"]


def test_invalid_execution_leaves_log_untouched(workflow, directory):
    actors = directory.actors
    workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    with pytest.raises(ValidationError):
        workflow.submit_execution(actors.S1, directory.ids["S1"], LOG_DATE, make_activity(sleep_time=""))

    log = workflow.get_by_date(actors.S1, directory.ids["S1"], LOG_DATE)
    assert log.execution is None
    assert log.execution_submitted_at is None


def test_other_student_cannot_submit_for_owner(workflow, directory):
    actors = directory.actors
    workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    with pytest.raises(ForbiddenError):
        workflow.submit_execution(actors.S2, directory.ids["S1"], LOG_DATE, make_activity())


def test_authorization_is_checked_before_validation(workflow, directory):
    with pytest.raises(ForbiddenError):
        workflow.submit_plan(directory.actors.P1, directory.ids["S1"], LOG_DATE, {})


def test_unlinked_parent_is_forbidden_regardless_of_status(workflow, directory):
    actors = directory.actors
    log = workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    with pytest.raises(ForbiddenError):
        workflow.approve(actors.P2, log.id)

    workflow.submit_execution(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())
    workflow.approve(actors.P1, log.id)
    with pytest.raises(ForbiddenError):
        workflow.approve(actors.P2, log.id)


def test_missing_log_is_forbidden_not_disclosed(workflow, directory):
    with pytest.raises(ForbiddenError):
        workflow.approve(directory.actors.P1, 9999)
    with pytest.raises(ForbiddenError):
        workflow.validate(directory.actors.T1, 9999)


def test_approve_requires_execution(workflow, directory):
    actors = directory.actors
    log = workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    with pytest.raises(ConflictError) as exc_info:
        workflow.approve(actors.P1, log.id)

    assert exc_info.value.current_status == LogStatus.DRAFT.value


def test_validate_on_draft_is_conflict(workflow, directory):
    log = _submitted_log(workflow, directory)

    with pytest.raises(ConflictError) as exc_info:
        workflow.validate(directory.actors.T1, log.id)

    assert exc_info.value.current_status == LogStatus.DRAFT.value


def test_only_homeroom_teacher_validates(workflow, directory):
    actors = directory.actors
    log = _submitted_log(workflow, directory)
    workflow.approve(actors.P1, log.id)

    for outsider in (actors.T2, actors.T3, actors.P1, actors.S1):
        with pytest.raises(ForbiddenError):
            workflow.validate(outsider, log.id)


def test_notification_failure_does_not_undo_transition(db, directory):
    failing = RecordingNotifier(fail=True)
    workflow = DailyLogWorkflow(db, notify_fn=failing, now_fn=FixedClock())
    actors = directory.actors

    log = _submitted_log(workflow, directory)
    approved = workflow.approve(actors.P1, log.id)

    assert approved.status == LogStatus.PARENT_APPROVED.value
    assert len(failing.calls) == 2


def test_score_attribution_failure_does_not_undo_validation(db, directory):
    def _broken_attribution(log, teacher_id):
        raise RuntimeError("score store offline")

    workflow = DailyLogWorkflow(db, attribute_score_fn=_broken_attribution, now_fn=FixedClock())
    actors = directory.actors
    log = _submitted_log(workflow, directory)
    workflow.approve(actors.P1, log.id)

    validated = workflow.validate(actors.T1, log.id)

    assert validated.status == LogStatus.TEACHER_VALIDATED.value
    assert db.get(CharacterLog, log.id).status == LogStatus.TEACHER_VALIDATED.value


def test_get_by_date_visibility(workflow, directory):
    actors = directory.actors
    _submitted_log(workflow, directory)
    student_id = directory.ids["S1"]

    for viewer in (actors.S1, actors.P1, actors.T1, actors.A1):
        assert workflow.get_by_date(viewer, student_id, LOG_DATE).student_id == student_id

    for outsider in (actors.S2, actors.P2, actors.T2, actors.C1):
        with pytest.raises(ForbiddenError):
            workflow.get_by_date(outsider, student_id, LOG_DATE)

    with pytest.raises(NotFoundError):
        workflow.get_by_date(actors.S1, student_id, LOG_DATE + datetime.timedelta(days=1))


def test_pending_lists_follow_their_ordering(workflow, directory):
    actors = directory.actors
    first_day = LOG_DATE
    second_day = LOG_DATE + datetime.timedelta(days=1)
    third_day = LOG_DATE + datetime.timedelta(days=2)
    first = _submitted_log(workflow, directory, first_day)
    second = _submitted_log(workflow, directory, second_day)
    workflow.submit_plan(actors.S1, directory.ids["S1"], third_day, make_activity())

    pending_approval = workflow.list_pending_approval(actors.P1)
    assert [log.log_date for log in pending_approval] == [second_day, first_day]
    assert workflow.list_pending_approval(actors.P2) == []

    workflow.approve(actors.P1, second.id)
    workflow.approve(actors.P1, first.id)

    pending_validation = workflow.list_pending_validation(actors.T1)
    assert [log.log_date for log in pending_validation] == [first_day, second_day]
    assert workflow.list_pending_validation(actors.T2) == []


def test_pending_lists_are_role_scoped(workflow, directory):
    with pytest.raises(ForbiddenError):
        workflow.list_pending_approval(directory.actors.T1)
    with pytest.raises(ForbiddenError):
        workflow.list_pending_validation(directory.actors.P1)


def test_stale_approval_loses_to_committed_one(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'journal.db'}")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as setup_db:
        directory = seed_directory(setup_db)
        log = _submitted_log(DailyLogWorkflow(setup_db), directory)
        log_id = log.id

    with Session(engine) as first_db, Session(engine) as second_db:
        first = DailyLogWorkflow(first_db)
        second = DailyLogWorkflow(second_db)
        # Load the row into the first session before the competing approval commits.
        assert first_db.get(CharacterLog, log_id).status == LogStatus.DRAFT.value

        second.approve(directory.actors.P1, log_id)

        with pytest.raises(ConflictError) as exc_info:
            first.approve(directory.actors.P1, log_id)

    assert exc_info.value.current_status == LogStatus.PARENT_APPROVED.value
    engine.dispose()


def test_concurrent_plan_insert_reports_conflict(workflow, directory, monkeypatch):
    actors = directory.actors
    workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    real_find = workflow._find
    calls = []

    def _find_missing_once(student_id, log_date):
        calls.append(log_date)
        if len(calls) == 1:
            return None
        return real_find(student_id, log_date)

    monkeypatch.setattr(workflow, "_find", _find_missing_once)

    with pytest.raises(ConflictError) as exc_info:
        workflow.submit_plan(actors.S1, directory.ids["S1"], LOG_DATE, make_activity(sport_activity="Yoga"))

    assert exc_info.value.current_status == LogStatus.DRAFT.value
    monkeypatch.undo()
    assert workflow.get_by_date(actors.S1, directory.ids["S1"], LOG_DATE).plan["sport_activity"] == "Jogging"


def test_default_clock_stamps_timezone_aware_times(db, directory):
    stamped = []

    def _recording_clock():
        value = utc_now()
        stamped.append(value)
        return value

    workflow = DailyLogWorkflow(db, now_fn=_recording_clock)
    log = _submitted_log(workflow, directory)
    workflow.approve(directory.actors.P1, log.id)

    assert DailyLogWorkflow(db).now_fn is utc_now
    assert len(stamped) == 3
    assert all(value.tzinfo is datetime.timezone.utc for value in stamped)
    assert CharacterLog(student_id=1, log_date=LOG_DATE).created_at.tzinfo is datetime.timezone.utc
    assert BehaviorRecord(
        student_id=1, contributor_id=2, contributor_role="Pembina", score=90, record_date=LOG_DATE
    ).created_at.tzinfo is datetime.timezone.utc


def test_timestamp_columns_are_timezone_aware():
    for table in (CharacterLog.__table__, BehaviorRecord.__table__, Mission.__table__):
        for column in table.columns:
            if isinstance(column.type, DateTime):
                assert column.type.timezone is True, f"{table.name}.{column.name}"


def test_stored_documents_expose_typed_records(workflow, directory):
    log = workflow.submit_plan(directory.actors.S1, directory.ids["S1"], LOG_DATE, make_activity())

    assert log.execution_record is None
    assert log.plan_record.wake_up_time == datetime.time(4, 30)
    assert log.plan_record.worship_activities == ("Shubuh", "Baca Al-Qur'an")

    log = workflow.submit_execution(
        directory.actors.S1, directory.ids["S1"], LOG_DATE, make_activity(sleep_time="21:45")
    )

    assert log.execution_record.sleep_time == datetime.time(21, 45)
    assert log.execution_record.to_document() == log.execution
