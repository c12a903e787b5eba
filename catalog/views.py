# catalog/views.py
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass
class RenderableResult:
    status: int
    template: str
    data: dict = field(default_factory=dict)


class ViewRenderer:
    """Turns a RenderableResult into an HTML page or a JSON body.

    Browsers (``Accept: text/html``) get the named template; every other
    client gets the data bag as JSON. The status code is the same either way.
    """

    def __init__(self, templates: Jinja2Templates):
        self.templates = templates

    @staticmethod
    def wants_html(request: Request) -> bool:
        accept = request.headers.get("accept", "")
        return "text/html" in accept

    def render(self, request: Request, result: RenderableResult):
        if self.wants_html(request):
            return self.templates.TemplateResponse(
                request, result.template, dict(result.data), status_code=result.status
            )
        return JSONResponse(jsonable_encoder(result.data), status_code=result.status)


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
_renderer = ViewRenderer(templates)


def get_renderer() -> ViewRenderer:
    return _renderer
