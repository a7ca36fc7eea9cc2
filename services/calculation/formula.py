"""
services/calculation/formula.py

Évaluateur de formules de moyenne.

Une formule est saisie par l'enseignant avec les *noms* des matières, par ex.
``=(Maths + Français) ÷ 2``. Au lieu de remplacer les noms dans le texte puis
d'évaluer la chaîne, on découpe la formule en jetons en reconnaissant chaque
nom de matière comme un jeton entier (correspondance exacte, la plus longue
d'abord), on construit un petit arbre syntaxique et on l'évalue directement.

- opérateurs: + - * / ( ), glyphes ÷ et × acceptés
- priorité usuelle, associativité à gauche, moins unaire, pas de multiplication implicite
- matière absente du barème -> 0
- en cas d'échec (syntaxe, division par zéro, résultat non fini):
  somme des notes des matières citées / diviseur, 0 si aucune note
"""

import logging
import math
import re
from collections import namedtuple
from typing import Iterable, List, Mapping, Optional, Sequence

from services.calculation.rounding import round_half_up

logger = logging.getLogger(__name__)

_GLYPHS = {"÷": "/", "×": "*"}
_OPERATORS = "+-*/()"
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?|[.,]\d+")
_NAME_CHARS = re.compile(r"[\w'’.]", re.UNICODE)

NUM, NAME, OP = "NUM", "NAME", "OP"

Token = namedtuple("Token", ["kind", "value"])
FormulaResult = namedtuple("FormulaResult", ["value", "expression", "used_fallback"])


class FormulaError(ValueError):
    """Formule illisible ou non évaluable."""


# ==========================================================
# [1] Normalisation et découpage
# ==========================================================

def normalize(formula: str) -> str:
    text = (formula or "").strip()
    if text.startswith("="):
        text = text[1:]
    for glyph, op in _GLYPHS.items():
        text = text.replace(glyph, op)
    return text.strip()


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _match_name(text: str, pos: int, names: Sequence[str]) -> Optional[str]:
    # names est trié du plus long au plus court
    for name in names:
        if not text.startswith(name, pos):
            continue
        end = pos + len(name)
        if end < len(text) and _is_word_char(name[-1]) and _is_word_char(text[end]):
            continue
        return name
    return None


def tokenize(formula: str, names: Iterable[str] = ()) -> List[Token]:
    """Découpe une formule normalisée. Lève FormulaError sur un caractère inattendu."""
    known = sorted({n for n in names if n and n.strip()}, key=len, reverse=True)
    tokens: List[Token] = []
    pos, size = 0, len(formula)

    while pos < size:
        ch = formula[pos]
        if ch.isspace():
            pos += 1
            continue

        name = _match_name(formula, pos, known)
        if name is not None:
            tokens.append(Token(NAME, name))
            pos += len(name)
            continue

        if ch in _OPERATORS:
            tokens.append(Token(OP, ch))
            pos += 1
            continue

        match = _NUMBER_RE.match(formula, pos)
        if match:
            tokens.append(Token(NUM, float(match.group().replace(",", "."))))
            pos = match.end()
            continue

        if ch.isalpha() or ch == "_":
            # nom inconnu: on lit jusqu'au prochain opérateur ou nom connu;
            # après un espace, seul un mot commençant par une lettre prolonge le nom
            start = pos
            while pos < size:
                c = formula[pos]
                if c.isspace():
                    nxt = pos
                    while nxt < size and formula[nxt].isspace():
                        nxt += 1
                    if nxt == size or not (formula[nxt].isalpha() or formula[nxt] == "_"):
                        break
                    if _match_name(formula, nxt, known) is not None:
                        break
                    pos = nxt
                    continue
                if not _NAME_CHARS.match(c):
                    break
                pos += 1
            tokens.append(Token(NAME, formula[start:pos].strip()))
            continue

        raise FormulaError(f"caractère inattendu {ch!r} en position {pos}")

    return tokens


# ==========================================================
# [2] Analyse syntaxique (descente récursive)
#     expr   := term (("+" | "-") term)*
#     term   := factor (("*" | "/") factor)*
#     factor := ("+" | "-") factor | NUM | NAME | "(" expr ")"
# ==========================================================

class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> Token:
        token = self._peek()
        if token is None:
            raise FormulaError("formule incomplète")
        self.pos += 1
        return token

    def parse(self):
        if not self.tokens:
            raise FormulaError("formule vide")
        node = self._expr()
        if self._peek() is not None:
            raise FormulaError(f"jeton inattendu {self._peek().value!r}")
        return node

    def _expr(self):
        node = self._term()
        while self._peek() in (Token(OP, "+"), Token(OP, "-")):
            op = self._take().value
            node = ("bin", op, node, self._term())
        return node

    def _term(self):
        node = self._factor()
        while self._peek() in (Token(OP, "*"), Token(OP, "/")):
            op = self._take().value
            node = ("bin", op, node, self._factor())
        return node

    def _factor(self):
        token = self._take()
        if token.kind == NUM:
            return ("num", token.value)
        if token.kind == NAME:
            return ("name", token.value)
        if token.value in "+-":
            operand = self._factor()
            return ("neg", operand) if token.value == "-" else operand
        if token.value == "(":
            node = self._expr()
            if self._take() != Token(OP, ")"):
                raise FormulaError("parenthèse fermante attendue")
            return node
        raise FormulaError(f"jeton inattendu {token.value!r}")


def parse(tokens: List[Token]):
    return _Parser(tokens).parse()


def _evaluate(node, values: Mapping[str, float]) -> float:
    kind = node[0]
    if kind == "num":
        return node[1]
    if kind == "name":
        return float(values.get(node[1]) or 0.0)
    if kind == "neg":
        return -_evaluate(node[1], values)

    _, op, left, right = node
    a, b = _evaluate(left, values), _evaluate(right, values)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if b == 0:
        raise FormulaError("division par zéro")
    return a / b


# ==========================================================
# [3] API publique
# ==========================================================

def referenced_subjects(formula: str, names: Iterable[str]) -> List[str]:
    """Noms de matières cités dans la formule (comparaison littérale, noms échappés)."""
    text = normalize(formula)
    found = []
    for name in sorted({n for n in names if n}, key=len, reverse=True):
        pattern = re.escape(name)
        if _is_word_char(name[0]):
            pattern = r"(?<![\w])" + pattern
        if _is_word_char(name[-1]):
            pattern += r"(?![\w])"
        if re.search(pattern, text):
            found.append(name)
            # un nom plus court contenu dans un nom plus long ne compte pas deux fois
            text = re.sub(pattern, " ", text)
    return found


def fallback_average(formula: str, grades: Mapping[str, float], divisor: float) -> float:
    """Somme des notes des matières citées / diviseur; 0 sans note contributive."""
    cited = [name for name in referenced_subjects(formula, grades.keys()) if grades.get(name) is not None]
    if not cited:
        return 0.0
    total = sum(float(grades[name]) for name in cited)
    if divisor == 0:
        # diviseur nul: +/-inf, sans exception
        return math.copysign(math.inf, total) if total else 0.0
    return round_half_up(total / divisor)


def evaluate_formula_detailed(
    formula: str,
    grades: Mapping[str, float],
    divisor: float = 1.0,
    subject_names: Iterable[str] = (),
) -> FormulaResult:
    """
    Évalue une formule de moyenne.
    - grades: nom de matière -> note (non modifié)
    - subject_names: noms connus de la classe, reconnus même sans note (-> 0)
    """
    names = set(grades.keys()) | set(subject_names)
    expression = None
    try:
        tokens = tokenize(normalize(formula), names)
        expression = " ".join(
            _format_number(grades.get(t.value) or 0.0) if t.kind == NAME
            else _format_number(t.value) if t.kind == NUM
            else t.value
            for t in tokens
        )
        value = _evaluate(parse(tokens), grades)
        if not math.isfinite(value):
            raise FormulaError("résultat non fini")
        return FormulaResult(round_half_up(value), expression, False)
    except (FormulaError, OverflowError, RecursionError) as e:
        logger.debug("Formule %r non évaluable (%s), repli sur somme / diviseur", formula, e)
        return FormulaResult(fallback_average(formula, grades, divisor), expression, True)


def evaluate_formula(
    formula: str,
    grades: Mapping[str, float],
    divisor: float = 1.0,
    subject_names: Iterable[str] = (),
) -> float:
    """Comme evaluate_formula_detailed, ne renvoie que la moyenne."""
    return evaluate_formula_detailed(formula, grades, divisor, subject_names).value


def build_formula(subject_names: Sequence[str], divisor: float) -> str:
    """Formule générée par l'écran de sélection des matières: =(A + B + C) ÷ n"""
    if not subject_names:
        return ""
    return f"=({' + '.join(subject_names)}) ÷ {_format_number(divisor)}"


def _format_number(value) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)
