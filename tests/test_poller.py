# tests/test_poller.py
import pytest

from conftest import FakeResponse
from appinv.core.graph_client import GraphClient
from appinv.core.poller import PollTimeout, ReportJobFailed, poll_until_complete
from appinv.core.reports import JobStatus, ReportJob


class Sleeper:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def _status(s, url=None):
    return FakeResponse(200, {"id": "job-1", "status": s, "url": url})


def _graph(session):
    return GraphClient(lambda: "t", session=session)


QUEUED = ReportJob("job-1", JobStatus.QUEUED, raw_status="queued")


def test_queued_inprogress_inprogress_completed(session):
    session.add("GET", "exportJobs('job-1')",
                _status("inProgress"), _status("inProgress"),
                _status("completed", "https://blob/report.zip?sig"))
    sleep = Sleeper()
    job = poll_until_complete(_graph(session), QUEUED, sleep=sleep)
    assert len(session.calls) == 3
    assert sleep.calls == [5, 5, 5]
    assert job.url == "https://blob/report.zip?sig"


def test_already_completed_does_not_poll(session):
    done = ReportJob("job-1", JobStatus.COMPLETED, url="https://blob/r.zip")
    sleep = Sleeper()
    assert poll_until_complete(_graph(session), done, sleep=sleep) is done
    assert session.calls == []
    assert sleep.calls == []


def test_completed_is_case_insensitive(session):
    session.add("GET", "exportJobs", _status("COMPLETED", "https://blob/r.zip"))
    job = poll_until_complete(_graph(session), QUEUED, sleep=Sleeper())
    assert job.is_completed


def test_other_statuses_keep_polling(session):
    session.add("GET", "exportJobs",
                _status("notStarted"), _status("unknownFutureValue"), _status("complete"),
                _status("inprogress"), _status("completed", "https://blob/r.zip"))
    sleep = Sleeper()
    poll_until_complete(_graph(session), QUEUED, sleep=sleep)
    assert len(sleep.calls) == 5


def test_failed_stops_immediately(session):
    session.add("GET", "exportJobs", _status("inProgress"), _status("failed"), _status("completed"))
    sleep = Sleeper()
    with pytest.raises(ReportJobFailed) as ei:
        poll_until_complete(_graph(session), QUEUED, sleep=sleep)
    assert ei.value.job.is_failed
    assert len(session.calls) == 2
    assert len(sleep.calls) == 2


def test_initially_failed_job_is_not_polled(session):
    failed = ReportJob("job-1", JobStatus.FAILED, raw_status="failed")
    with pytest.raises(ReportJobFailed):
        poll_until_complete(_graph(session), failed, sleep=Sleeper())
    assert session.calls == []


def test_completed_without_url(session):
    session.add("GET", "exportJobs", _status("completed"))
    with pytest.raises(ReportJobFailed):
        poll_until_complete(_graph(session), QUEUED, sleep=Sleeper())


def test_max_polls(session):
    session.add("GET", "exportJobs", *[_status("inProgress") for _ in range(3)])
    with pytest.raises(PollTimeout) as ei:
        poll_until_complete(_graph(session), QUEUED, sleep=Sleeper(), max_polls=3)
    assert ei.value.polls == 3
    assert len(session.calls) == 3


def test_token_fetched_per_status_call(session):
    tokens = iter(["t1", "t2"])
    graph = GraphClient(lambda: next(tokens), session=session)
    session.add("GET", "exportJobs", _status("inProgress"), _status("completed", "https://blob/r.zip"))
    poll_until_complete(graph, QUEUED, sleep=Sleeper())
    assert [c["headers"]["Authorization"] for c in session.calls] == ["Bearer t1", "Bearer t2"]
