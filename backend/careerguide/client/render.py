"""
HTML rendering for dashboard views

Templates live in `careerguide/client/templates`. Autoescaping is always
on, so any text coming from the API is escaped on output.
"""

from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from careerguide.client.views import InstitutionDashboardState, StudentDashboardState


@lru_cache()
def get_environment() -> Environment:
    return Environment(
        loader=PackageLoader("careerguide.client", "templates"),
        autoescape=select_autoescape(enabled_extensions=("html",), default=True),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(template_name: str, **context) -> str:
    return get_environment().get_template(template_name).render(**context)


def render_student_dashboard(state: StudentDashboardState) -> str:
    return render("student_dashboard.html", state=state)


def render_institution_dashboard(state: InstitutionDashboardState) -> str:
    return render("institution_dashboard.html", state=state)
