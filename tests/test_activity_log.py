from datetime import timedelta

from sqlalchemy.exc import OperationalError

from services import activity_log
from services.activity_log import activity_stats, list_activities, log_activity, recent_activities
from models import ActivityLog, utcnow


def test_log_activity_returns_entry(session):
    entry = log_activity(session, "branch-1", "Key Generated", "m@x.com")

    assert entry.id is not None
    assert entry.branch_id == "branch-1"
    assert entry.actor == "m@x.com"


def test_log_activity_swallows_failures(session, monkeypatch):
    def broken_session(*args, **kwargs):
        raise OperationalError("INSERT INTO activity_logs", {}, Exception("no such table"))

    monkeypatch.setattr(activity_log, "Session", broken_session)

    assert log_activity(session, "branch-1", "Key Generated") is None


def test_recent_activities_most_recent_first(session):
    for i in range(3):
        log_activity(session, "branch-1", f"step {i}")
    log_activity(session, "branch-2", "other branch")

    entries = recent_activities(session, "branch-1")

    assert [e.process for e in entries] == ["step 2", "step 1", "step 0"]


def test_recent_activities_limit(session):
    for i in range(25):
        log_activity(session, "branch-1", f"step {i}")

    assert len(recent_activities(session, "branch-1")) == 20
    assert len(recent_activities(session, "branch-1", limit=5)) == 5
    assert recent_activities(session, "branch-1", limit=5)[0].process == "step 24"
    # out-of-range limits are clamped
    assert len(recent_activities(session, "branch-1", limit=0)) == 1


def test_activity_stats_counts_by_process(session):
    log_activity(session, "b1", "Key Generated")
    log_activity(session, "b2", "Key Generated")
    log_activity(session, "b1", "Branch Added")
    session.add(ActivityLog(branch_id="b1", process="Key Removed", timestamp=utcnow() - timedelta(days=60)))
    session.commit()

    stats = activity_stats(session)

    assert stats["total"] == 3
    assert stats["byProcess"] == {"Key Generated": 2, "Branch Added": 1}
    assert list(stats["byProcess"])[0] == "Key Generated"

    window = activity_stats(session, date_from=utcnow() - timedelta(days=90))
    assert window["byProcess"]["Key Removed"] == 1


def test_activity_stats_top_actors_and_daily_trend(session):
    for _ in range(3):
        log_activity(session, "b1", "Key Generated", "m@x.com")
    log_activity(session, "b2", "Branch Added", "r@x.com")
    log_activity(session, "b2", "Branch Removed")
    session.add(ActivityLog(branch_id="b1", process="Key Removed", actor="old@x.com", timestamp=utcnow() - timedelta(days=10)))
    session.commit()

    stats = activity_stats(session)

    # entries without an actor are not ranked
    assert stats["byActor"] == [
        {"actor": "m@x.com", "count": 3},
        {"actor": "old@x.com", "count": 1},
        {"actor": "r@x.com", "count": 1},
    ]
    # the trend only covers the last week
    assert stats["dailyTrend"] == [{"date": utcnow().date().isoformat(), "count": 5}]


def test_activity_stats_top_actors_capped(session):
    for i in range(12):
        log_activity(session, "b1", "Key Generated", f"user{i:02d}@x.com")

    assert len(activity_stats(session)["byActor"]) == 10


def test_list_activities_filters_and_pages(session):
    for i in range(7):
        log_activity(session, "b1", "Key Generated", "m@x.com")
    log_activity(session, "b1", "Branch Added", "r@x.com")
    log_activity(session, "b2", "Key Removed", "M@x.com")
    session.add(ActivityLog(branch_id="b1", process="Key Removed", actor="m@x.com", timestamp=utcnow() - timedelta(days=60)))
    session.commit()

    page = list_activities(session, page=2, limit=3)
    assert page["meta"] == {"page": 2, "limit": 3, "total": 10, "totalPages": 4}
    assert len(page["activities"]) == 3

    assert list_activities(session, actor="m@x")["meta"]["total"] == 9
    assert list_activities(session, process="key removed")["meta"]["total"] == 2
    assert list_activities(session, branch_id="b2")["meta"]["total"] == 1

    recent = list_activities(session, date_from=utcnow() - timedelta(days=1))
    assert recent["meta"]["total"] == 9
    assert recent["activities"][0].process == "Key Removed"
    assert recent["activities"][0].branch_id == "b2"


def test_list_activities_empty(session):
    result = list_activities(session)
    assert result["meta"] == {"page": 1, "limit": 50, "total": 0, "totalPages": 0}
    assert result["activities"] == []
