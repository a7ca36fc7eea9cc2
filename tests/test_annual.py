from fakes import InMemoryGradeSource, grade, student, subject
from schemas.class_thresholds import ClassThreshold
from schemas.evaluations import Evaluation
from schemas.results import StudentAnnualResult
from services.calculation.annual import (
    ADMIS,
    REDOUBLER,
    AnnualAggregator,
    compute_mga,
    decide,
    find_periods,
    sort_by_mga,
)

SUBJECTS = [subject(1, "Maths"), subject(2, "Français")]

EVAL_1 = Evaluation(id=1, nom="EVALUATION N°1", class_id=1, school_year_id=1)
EVAL_2 = Evaluation(id=2, nom="EVALUATION N°2", class_id=1, school_year_id=1)
PASSAGE = Evaluation(id=4, nom="COMPOSITION DE PASSAGE", class_id=1, school_year_id=1)


def _source(grades, students=None, evaluations=(EVAL_1, EVAL_2, PASSAGE), **kwargs):
    return InMemoryGradeSource(
        students=students or [student(1)],
        subjects=SUBJECTS,
        grades=grades,
        evaluations=evaluations,
        **kwargs,
    )


def test_two_periods_and_passage_give_mga_and_decision():
    source = _source([
        grade(1, 1, 16, evaluation_id=1), grade(1, 2, 16, evaluation_id=1),
        grade(1, 1, 14, evaluation_id=2), grade(1, 2, 14, evaluation_id=2),
        grade(1, 1, 15, evaluation_id=4), grade(1, 2, 15, evaluation_id=4),
    ])
    result = AnnualAggregator(source).compute(1, school_year_id=1).results[0]

    assert (result.moy_compo1, result.moy_compo2, result.moy_compo3) == (16.0, 14.0, None)
    assert result.moy_compo_passage == 15.0
    assert result.moy_annuelle == 15.0
    assert result.mga == 15.0
    assert result.decision == ADMIS


def test_no_passage_means_no_mga_and_no_decision():
    source = _source([grade(1, 1, 12, evaluation_id=1), grade(1, 1, 14, evaluation_id=2)])
    result = AnnualAggregator(source).compute(1).results[0]

    assert result.moy_annuelle == 13.0
    assert result.mga is None
    assert result.decision == ""


def test_no_period_average_means_no_mga():
    source = _source([grade(1, 1, 18, evaluation_id=4)])
    result = AnnualAggregator(source).compute(1).results[0]

    assert result.moy_annuelle is None
    assert result.moy_compo_passage == 18.0
    assert result.mga is None


def test_below_threshold_repeats_the_year():
    source = _source([grade(1, 1, 8, evaluation_id=1), grade(1, 1, 9, evaluation_id=4)])
    result = AnnualAggregator(source).compute(1).results[0]

    # (8 + 2 x 9) / 3 = 8.67
    assert result.mga == 8.67
    assert result.decision == REDOUBLER


def test_class_threshold_overrides_default():
    threshold = ClassThreshold(class_id=1, moyenne_admission=12, moyenne_redoublement=9)
    source = _source([grade(1, 1, 11, evaluation_id=1), grade(1, 1, 11, evaluation_id=4)], threshold=threshold)
    report = AnnualAggregator(source).compute(1)

    assert report.moyenne_admission == 12
    assert report.results[0].decision == REDOUBLER


def test_absent_note_only_drops_that_subject():
    source = _source([
        grade(1, 1, 12, evaluation_id=1), grade(1, 2, 0, evaluation_id=1, absent=True),
        grade(1, 1, 10, evaluation_id=4),
    ])
    result = AnnualAggregator(source).compute(1).results[0]

    assert result.moy_compo1 == 12.0
    assert result.mga == 10.67


def test_results_sorted_by_mga_with_missing_last():
    students = [student(1), student(2), student(3)]
    source = _source(
        [
            grade(1, 1, 9, evaluation_id=1), grade(1, 1, 9, evaluation_id=4),
            grade(2, 1, 12, evaluation_id=1),
            grade(3, 1, 17, evaluation_id=1), grade(3, 1, 16, evaluation_id=4),
        ],
        students=students,
    )
    results = AnnualAggregator(source).compute(1).results

    assert [r.student_id for r in results] == [3, 1, 2]
    assert results[-1].mga is None


def test_sort_by_mga_keeps_order_for_equal_values():
    rows = [
        StudentAnnualResult(student_id=1, mga=None),
        StudentAnnualResult(student_id=2, mga=11.0),
        StudentAnnualResult(student_id=3, mga=None),
        StudentAnnualResult(student_id=4, mga=11.0),
    ]
    assert [r.student_id for r in sort_by_mga(rows)] == [2, 4, 1, 3]


def test_other_school_year_is_ignored():
    old = Evaluation(id=9, nom="EVALUATION N°1", class_id=1, school_year_id=0)
    source = _source(
        [grade(1, 1, 4, evaluation_id=9), grade(1, 1, 14, evaluation_id=1)],
        evaluations=(old, EVAL_1),
    )
    assert AnnualAggregator(source).compute(1, school_year_id=1).results[0].moy_compo1 == 14.0


def test_periods_matched_by_exact_name():
    renamed = Evaluation(id=5, nom="Evaluation n°1", class_id=1)
    periods = find_periods([renamed, EVAL_2])
    assert periods["moy_compo1"] is None
    assert periods["moy_compo2"] == EVAL_2


def test_mga_and_decision_helpers():
    threshold = ClassThreshold.default_for(1)
    assert compute_mga(15, 15) == 15
    assert compute_mga(None, 15) is None
    assert decide(10.0, threshold) == ADMIS
    assert decide(9.99, threshold) == REDOUBLER
    assert decide(None, threshold) == ""


def test_annual_statistics():
    students = [student(1, gender="F"), student(2, gender="M"), student(3, gender="M"), student(4, gender="F")]
    source = _source(
        [
            grade(1, 1, 14, evaluation_id=1), grade(1, 1, 12, evaluation_id=4),
            grade(2, 1, 6, evaluation_id=1), grade(2, 1, 8, evaluation_id=4),
            grade(3, 1, 11, evaluation_id=2),
        ],
        students=students,
    )
    stats = AnnualAggregator(source).compute(1).statistics

    assert stats.inscrits.total == 4
    assert (stats.presents.garcons, stats.presents.filles) == (2, 1)
    assert (stats.abandons.garcons, stats.abandons.filles, stats.abandons.total) == (0, 1, 1)
    assert (stats.admis.filles, stats.redoublants.garcons) == (1, 1)
    assert stats.pourcentage_admis == 25
    # (12.67 + 7.33) / 2
    assert stats.moyenne_generale_classe == 10.0
