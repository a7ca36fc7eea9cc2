import datetime as dt

import httpx
import pytest

from services.calculation.period import PeriodAggregator
from services.errors import GradeSourceError
from services.http_grade_source import HttpGradeSource

BASE_URL = "http://grades.test/api"


class FakeRemote:
    """API ScolarFlow distante simulée (enveloppe {success, data}, champs camelCase)."""

    def __init__(self, failing_paths=()):
        self.failing_paths = set(failing_paths)
        self.posted = []
        self.deleted = []
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api", "", 1)
        if path in self.failing_paths:
            return httpx.Response(500, json={"success": False, "error": "boom"})

        if path == "/students":
            return self._ok([
                {"id": 1, "name": "Awa", "classId": 1, "gender": "F"},
                {"id": 2, "name": "Bakary", "classId": 1, "gender": "M"},
                {"id": 3, "name": "Ancien", "classId": 1, "gender": "M", "isActive": False},
            ])
        if path == "/subjects":
            return self._ok([{"id": 1, "name": "Maths", "classId": 1}, {"id": 2, "name": "Français", "classId": 1}])
        if path == "/class-average-configs/class/1":
            return httpx.Response(404, json={"success": False, "error": "not found"})
        if path == "/class-thresholds":
            return self._ok([{"classId": 1, "moyenneAdmission": 12, "moyenneRedoublement": 9, "maxNote": 20}])
        if path == "/evaluations/class/1":
            return self._ok([
                {"id": 1, "nom": "EVALUATION N°1", "classId": 1, "schoolYearId": 1, "date": "2024-11-15T00:00:00Z"},
                {"id": 7, "nom": "EVALUATION N°1", "classId": 1, "schoolYearId": 0},
            ])
        if path == "/notes":
            notes = [
                {"studentId": 1, "subjectId": 1, "evaluationId": 1, "value": 14},
                {"studentId": 1, "subjectId": 2, "evaluationId": 1, "value": 16},
                {"studentId": 2, "subjectId": 1, "evaluationId": 1, "value": None, "isAbsent": True},
            ]
            params = request.url.params
            if "subjectId" in params:
                notes = [n for n in notes if n["subjectId"] == int(params["subjectId"])]
            return self._ok(notes)
        if path == "/moyennes" and request.method == "POST":
            self.posted.append(request.read())
            return self._ok({"id": len(self.posted)})
        if path == "/moyennes/evaluation/1":
            return self._ok([
                {"id": 5, "studentId": 1, "evaluationId": 1, "moyenne": 15.0, "isActive": True},
                {"id": 6, "studentId": 2, "evaluationId": 1, "moyenne": 11.0, "isActive": True},
            ])
        if path.startswith("/moyennes/") and request.method == "DELETE":
            self.deleted.append(path)
            return self._ok({"isActive": False})
        return httpx.Response(404)

    @staticmethod
    def _ok(data):
        return httpx.Response(200, json={"success": True, "data": data})


def _source(remote):
    return HttpGradeSource(base_url=BASE_URL, token="remote-token", delay_ms=0,
                           transport=httpx.MockTransport(remote))


def test_maps_camel_case_payloads():
    remote = FakeRemote()
    source = _source(remote)

    students = source.fetch_students(1)
    assert [s.name for s in students] == ["Awa", "Bakary"]

    threshold = source.fetch_class_threshold(1)
    assert (threshold.moyenne_admission, threshold.moyenne_redoublement) == (12.0, 9.0)

    evaluations = source.fetch_evaluations(1, school_year_id=1)
    assert [e.id for e in evaluations] == [1]
    assert evaluations[0].date == dt.date(2024, 11, 15)

    grades = source.fetch_grades_for_evaluation(1, 1)
    assert grades[2].is_absent is True and grades[2].value == 0.0

    assert remote.requests[0].headers["Authorization"] == "Bearer remote-token"


def test_missing_config_is_not_an_error():
    assert _source(FakeRemote()).fetch_formula_config(1) is None


def test_server_error_raises_grade_source_error():
    source = _source(FakeRemote(failing_paths={"/students"}))
    with pytest.raises(GradeSourceError):
        source.fetch_students(1)


def test_period_aggregation_over_remote_api():
    remote = FakeRemote()
    report = PeriodAggregator(_source(remote), today=dt.date(2025, 1, 10)).compute(1, 1)

    # Bakary absent -> exclu
    assert [(r.student_id, r.average) for r in report.results] == [(1, 15.0)]
    assert report.statistics.moyenne_admission == 12.0
    assert len(remote.posted) == 1
    assert b'"moyenne":15.0' in remote.posted[0].replace(b" ", b"")
    # Bakary absent: sa moyenne précédente est retirée
    assert remote.deleted == ["/moyennes/6"]


def test_period_aggregation_falls_back_to_subject_requests():
    remote = FakeRemote()
    source = _source(remote)
    calls = []

    def broken(class_id, evaluation_id):
        calls.append(evaluation_id)
        raise GradeSourceError("indisponible")

    source.fetch_grades_for_evaluation = broken
    report = PeriodAggregator(source).compute(1, 1, persist=False)

    assert calls == [1]
    assert report.results[0].notes == {1: 14.0, 2: 16.0}
