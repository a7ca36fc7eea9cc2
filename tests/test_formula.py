import math

import pytest

from services.calculation.formula import (
    build_formula,
    evaluate_formula,
    evaluate_formula_detailed,
    referenced_subjects,
    tokenize,
    normalize,
    FormulaError,
)
from services.calculation.rounding import round_half_up, percent, mean


# ==========================================================
# [Évaluation nominale]
# ==========================================================

def test_two_subjects_divided_by_two():
    assert evaluate_formula("=(Maths + Français) / 2", {"Maths": 14, "Français": 16}) == 15.0


def test_unknown_subject_counts_as_zero():
    assert evaluate_formula("=(Maths + Sciences)/2", {"Maths": 10}) == 5.0


def test_division_and_multiplication_glyphs():
    grades = {"Maths": 12, "Français": 9}
    assert evaluate_formula("=(Maths + Français) ÷ 3", grades) == 7.0
    assert evaluate_formula("=Maths × 2 ÷ 4", grades) == 6.0


def test_operator_precedence_and_left_associativity():
    grades = {"Maths": 10, "Français": 5}
    assert evaluate_formula("Maths + Français * 2", grades) == 20.0
    assert evaluate_formula("Maths - Français - 1", grades) == 4.0
    assert evaluate_formula("Maths / Français / 2", grades) == 1.0


def test_unary_minus():
    assert evaluate_formula("-Maths + 20", {"Maths": 4}) == 16.0
    assert evaluate_formula("Maths * -1", {"Maths": 4}) == -4.0


def test_decimal_comma_literal():
    assert evaluate_formula("Maths * 0,5", {"Maths": 14}) == 7.0


def test_result_rounded_half_up_to_two_decimals():
    assert evaluate_formula("Maths / 3", {"Maths": 10}) == 3.33
    assert evaluate_formula("Maths / 8", {"Maths": 1}) == 0.13


def test_subject_known_without_grade_is_zero():
    result = evaluate_formula("=(Maths + Dessin) / 2", {"Maths": 18}, subject_names=["Maths", "Dessin"])
    assert result == 9.0


# ==========================================================
# [Noms de matières]
# ==========================================================

def test_name_prefix_does_not_collide():
    grades = {"Ortho": 20, "Orthographe": 10}
    assert evaluate_formula("=(Orthographe + Ortho) / 2", grades) == 15.0
    assert evaluate_formula("=Ortho", grades) == 20.0


def test_names_with_spaces_and_regex_characters():
    grades = {"C++": 12, "Maths": 8, "Histoire Géo": 16}
    assert evaluate_formula("=(C++ + Maths) ÷ 2", grades) == 10.0
    assert evaluate_formula("=(Histoire Géo + Maths) / 2", grades) == 12.0


def test_tokenize_matches_longest_name_first():
    tokens = tokenize(normalize("=Orthographe+Ortho"), ["Ortho", "Orthographe"])
    assert [t.value for t in tokens] == ["Orthographe", "+", "Ortho"]


def test_tokenize_rejects_unexpected_character():
    with pytest.raises(FormulaError):
        tokenize("Maths @ 2", ["Maths"])


def test_referenced_subjects_counts_each_name_once():
    found = referenced_subjects("=(Orthographe + Maths) / 2", ["Ortho", "Orthographe", "Maths", "Sciences"])
    assert sorted(found) == ["Maths", "Orthographe"]


# ==========================================================
# [Repli somme / diviseur]
# ==========================================================

def test_syntax_error_falls_back_to_sum_over_divisor():
    result = evaluate_formula_detailed("=(Maths + Français) @ 2", {"Maths": 12, "Français": 15}, divisor=3)
    assert result.used_fallback is True
    assert result.value == 9.0


def test_implicit_multiplication_is_rejected():
    result = evaluate_formula_detailed("2 Maths", {"Maths": 10})
    assert result.used_fallback is True
    assert result.value == 10.0


def test_number_after_unknown_name_is_rejected():
    result = evaluate_formula_detailed("=(Maths + Dessin 2) / 2", {"Maths": 10}, divisor=4)
    assert result.used_fallback is True
    assert result.value == 2.5


def test_unknown_name_may_span_several_words():
    result = evaluate_formula_detailed("=(Maths + Arts Plastiques) / 2", {"Maths": 10}, divisor=4)
    assert result.used_fallback is False
    assert result.value == 5.0


def test_division_by_zero_falls_back():
    result = evaluate_formula_detailed("Maths / 0", {"Maths": 14}, divisor=2)
    assert result.used_fallback is True
    assert result.value == 7.0


def test_fallback_without_known_subject_is_zero():
    assert evaluate_formula("=@@", {"Maths": 14}, divisor=2) == 0.0
    assert evaluate_formula("", {"Maths": 14}, divisor=2) == 0.0


def test_zero_divisor_in_fallback_gives_infinity():
    value = evaluate_formula("Maths /", {"Maths": 12}, divisor=0)
    assert math.isinf(value) and value > 0


def test_grades_mapping_is_not_modified():
    grades = {"Maths": 14, "Français": 16}
    snapshot = dict(grades)
    evaluate_formula("=(Maths + Français + Sciences) / 3", grades, subject_names=["Sciences"])
    assert grades == snapshot


def test_same_inputs_same_result():
    grades = {"Maths": 13.5, "Français": 11.25}
    results = {evaluate_formula("=(Maths + Français) ÷ 2", grades) for _ in range(5)}
    assert results == {12.38}


def test_expression_shows_substituted_values():
    result = evaluate_formula_detailed("=(Maths + Français) ÷ 2", {"Maths": 14, "Français": 15.5})
    assert result.expression == "( 14 + 15.5 ) / 2"


# ==========================================================
# [Génération de formule]
# ==========================================================

def test_build_formula_from_selection():
    formula = build_formula(["Maths", "Français"], 2)
    assert formula == "=(Maths + Français) ÷ 2"
    assert evaluate_formula(formula, {"Maths": 14, "Français": 16}) == 15.0


def test_build_formula_empty_selection():
    assert build_formula([], 2) == ""


# ==========================================================
# [Arrondis et agrégats]
# ==========================================================

def test_round_half_up():
    assert round_half_up(2.675) == 2.68
    assert round_half_up(0.125) == 0.13
    assert math.isinf(round_half_up(math.inf))


def test_percent_and_mean():
    assert percent(2, 3) == 67
    assert percent(1, 0) == 0
    assert mean([None, 10, 14]) == 12
    assert mean([None]) is None
