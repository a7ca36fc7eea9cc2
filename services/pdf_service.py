from datetime import date
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config.settings import settings
from schemas.results import AnnualReport, PeriodReport

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _format_moyenne(value) -> str:
    # 12.5 -> "12,50" ; None -> "-"
    if value is None:
        return "-"
    return f"{value:.2f}".replace(".", ",")


class PDFService:
    def __init__(self, template_dir: str = None):
        # environnement de templates
        template_dir = Path(template_dir or settings.TEMPLATES_DIR)
        if not template_dir.is_absolute():
            template_dir = PROJECT_ROOT / template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["moyenne"] = _format_moyenne

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        """Rendu HTML d'un template"""
        template = self.env.get_template(template_name)
        return template.render(**data)

    def _html_to_pdf(self, html_content: str) -> bytes:
        """HTML -> PDF"""
        # import tardif: WeasyPrint dépend de bibliothèques système (pango)
        import weasyprint

        base_url = settings.WEASYPRINT_FONT_DIR or str(PROJECT_ROOT)
        return weasyprint.HTML(string=html_content, base_url=base_url).write_pdf()

    def render_bilan_html(self, report: AnnualReport, class_name: str, school_year: str = None) -> str:
        """Bilan annuel au format HTML"""
        return self._render_template("bilan_annuel.html", {
            "report": report,
            "class_name": class_name,
            "school_year": school_year,
            "generated_date": date.today().strftime("%d/%m/%Y"),
        })

    def generate_bilan_pdf(self, report: AnnualReport, class_name: str, school_year: str = None) -> bytes:
        """Bilan annuel au format PDF"""
        return self._html_to_pdf(self.render_bilan_html(report, class_name, school_year))

    def render_moyennes_html(self, report: PeriodReport, class_name: str, evaluation_name: str) -> str:
        """Tableau des moyennes d'une évaluation"""
        return self._render_template("moyennes.html", {
            "report": report,
            "class_name": class_name,
            "evaluation_name": evaluation_name,
            "generated_date": date.today().strftime("%d/%m/%Y"),
        })

    def generate_moyennes_pdf(self, report: PeriodReport, class_name: str, evaluation_name: str) -> bytes:
        return self._html_to_pdf(self.render_moyennes_html(report, class_name, evaluation_name))
