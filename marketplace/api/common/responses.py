from typing import Any

from fastapi import Request

from marketplace.core.templating import templates


class APIResponse:
    @staticmethod
    def count(value: int) -> dict:
        """Body shape shared by every counter endpoint."""
        return {"count": value}

    @staticmethod
    def html_response(template_name: str, context: dict, request: Request) -> Any:
        return templates.TemplateResponse(request, template_name, context)
