import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from config.settings import settings
from schemas.class_average_configs import AverageFormulaConfig
from schemas.class_thresholds import ClassThreshold
from schemas.evaluations import Evaluation
from schemas.moyennes import PeriodAverage
from schemas.notes import SubjectGrade
from schemas.students import Student
from schemas.subjects import Subject
from services.errors import GradeSourceError
from services.grade_source import GradeSource

logger = logging.getLogger(__name__)


class HttpGradeSource(GradeSource):
    """
    GradeSource adossé à l'API REST ScolarFlow distante.
    - réponses au format {"success": bool, "data": ...} en camelCase
    - appels séquentiels, avec une pause optionnelle entre deux appels (rate limit)
    """

    def __init__(self, base_url: str = None, token: str = None, timeout: int = None,
                 delay_ms: int = None, transport: httpx.BaseTransport = None):
        self.base_url = (base_url or settings.GRADES_API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.GRADES_API_TOKEN
        self.timeout = timeout or settings.GRADES_API_TIMEOUT
        self.delay_ms = settings.GRADES_API_DELAY_MS if delay_ms is None else delay_ms
        self.transport = transport
        self._last_call = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _throttle(self):
        if not self.delay_ms or self._last_call is None:
            return
        wait = self.delay_ms / 1000 - (time.monotonic() - self._last_call)
        if wait > 0:
            time.sleep(wait)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Requête HTTP commune, renvoie le champ data de l'enveloppe."""
        url = f"{self.base_url}{endpoint}"
        self._throttle()
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, url, headers=self._headers(), **kwargs)
                response.raise_for_status()
                body = response.json() if response.content else {}
        except httpx.TimeoutException as e:
            raise GradeSourceError(f"API distante: délai dépassé ({method} {endpoint})") from e
        except httpx.HTTPStatusError as e:
            raise GradeSourceError(
                f"API distante: HTTP {e.response.status_code} ({method} {endpoint})"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise GradeSourceError(f"API distante injoignable: {e}") from e
        finally:
            self._last_call = time.monotonic()

        if isinstance(body, dict) and "data" in body:
            if body.get("success") is False:
                raise GradeSourceError(f"API distante: {body.get('error') or 'échec'} ({method} {endpoint})")
            return body["data"]
        return body

    # ==========================================================
    # [Conversion camelCase -> schémas]
    # ==========================================================

    @staticmethod
    def _grade(raw: Dict[str, Any]) -> SubjectGrade:
        return SubjectGrade(
            student_id=raw["studentId"],
            subject_id=raw["subjectId"],
            evaluation_id=raw["evaluationId"],
            value=float(raw.get("value") or 0),
            is_absent=bool(raw.get("isAbsent", False)),
        )

    # ==========================================================
    # [GradeSource]
    # ==========================================================

    def fetch_formula_config(self, class_id: int) -> Optional[AverageFormulaConfig]:
        try:
            raw = self._make_request("GET", f"/class-average-configs/class/{class_id}")
        except GradeSourceError as e:
            # 404: pas de configuration, ce n'est pas une erreur
            if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
                return None
            raise
        if not raw:
            return None
        return AverageFormulaConfig(
            class_id=raw["classId"],
            divisor=float(raw["divisor"]),
            formula=raw["formula"],
            selected_subject_ids=raw.get("selectedSubjects") or raw.get("selectedSubjectIds") or [],
        )

    def fetch_class_threshold(self, class_id: int) -> Optional[ClassThreshold]:
        raw = self._make_request("GET", "/class-thresholds")
        for item in raw or []:
            if item.get("classId") == class_id:
                return ClassThreshold(
                    class_id=class_id,
                    moyenne_admission=float(item["moyenneAdmission"]),
                    moyenne_redoublement=float(item["moyenneRedoublement"]),
                    max_note=int(item.get("maxNote") or settings.DEFAULT_MAX_NOTE),
                )
        return None

    def fetch_students(self, class_id: int) -> List[Student]:
        raw = self._make_request("GET", "/students", params={"classId": class_id})
        return [
            Student(
                id=s["id"],
                name=s["name"],
                class_id=s.get("classId", class_id),
                gender=s.get("gender"),
                student_number=s.get("studentNumber"),
                is_active=s.get("isActive", True),
            )
            for s in raw or []
            if s.get("isActive", True)
        ]

    def fetch_subjects(self, class_id: int) -> List[Subject]:
        raw = self._make_request("GET", "/subjects", params={"classId": class_id})
        return [
            Subject(id=s["id"], name=s["name"], class_id=s.get("classId", class_id),
                    coefficient=float(s.get("coefficient") or 1))
            for s in raw or []
        ]

    def fetch_evaluations(self, class_id: int, school_year_id: Optional[int] = None) -> List[Evaluation]:
        raw = self._make_request("GET", f"/evaluations/class/{class_id}")
        evaluations = [
            Evaluation(
                id=e["id"],
                nom=e["nom"],
                class_id=e.get("classId", class_id),
                school_year_id=e.get("schoolYearId"),
                date=(e.get("date") or "")[:10] or None,
            )
            for e in raw or []
        ]
        if school_year_id is not None:
            evaluations = [e for e in evaluations if e.school_year_id == school_year_id]
        return evaluations

    def fetch_grades_for_evaluation(self, class_id: int, evaluation_id: int) -> List[SubjectGrade]:
        raw = self._make_request("GET", "/notes", params={"classId": class_id, "evaluationId": evaluation_id})
        return [self._grade(n) for n in raw or []]

    def fetch_grades_for_subject(self, class_id: int, subject_id: int) -> List[SubjectGrade]:
        raw = self._make_request("GET", "/notes", params={"classId": class_id, "subjectId": subject_id})
        return [self._grade(n) for n in raw or []]

    def upsert_period_average(self, record: PeriodAverage) -> None:
        self._make_request(
            "POST",
            "/moyennes",
            json={
                "studentId": record.student_id,
                "evaluationId": record.evaluation_id,
                "moyenne": record.average,
                "date": record.date.isoformat(),
            },
        )

    def deactivate_period_averages(self, evaluation_id: int, student_ids: Iterable[int]) -> None:
        # suppression logique côté API (is_active = false)
        stale = set(student_ids)
        raw = self._make_request("GET", f"/moyennes/evaluation/{evaluation_id}")
        for item in raw or []:
            if item.get("studentId") in stale and item.get("isActive", True):
                self._make_request("DELETE", f"/moyennes/{item['id']}")
