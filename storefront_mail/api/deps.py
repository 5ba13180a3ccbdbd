"""
Request dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from storefront_mail.runtime import MailRuntime


def get_runtime(request: Request) -> MailRuntime:
    """The mail runtime owned by the application lifespan."""
    return request.app.state.runtime


Runtime = Annotated[MailRuntime, Depends(get_runtime)]
