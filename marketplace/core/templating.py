from pathlib import Path

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Plain-text templates (contract bodies) are stored, not served, so they are
# rendered without HTML escaping.
text_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def format_date(value) -> str:
    """US-style dates for contract documents, 'N/A' when unset."""
    if not value:
        return "N/A"
    return value.strftime("%m/%d/%Y")


templates.env.filters["contract_date"] = format_date
text_templates.filters["contract_date"] = format_date
