from fastapi import Request

from vitrina.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.context
