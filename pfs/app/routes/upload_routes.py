import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from pfs import config
from pfs.app.services.auth import require_token
from pfs.app.services.upload_receiver import UPLOAD_FORM
from pfs.logger_config import setup_logger

logger = setup_logger()

CONFIRMATION_TEMPLATE = """<html>
File uploaded successfully: {filename}
<p><a href="/">Back</a></p>
</html>
"""


def create_upload_router(form_path: str) -> APIRouter:
    """Routes for the upload form (served at ``form_path``) and the receiver."""
    router = APIRouter(dependencies=[Depends(require_token)])

    @router.get(form_path, response_class=HTMLResponse)
    async def upload_form():
        return HTMLResponse(UPLOAD_FORM)

    @router.post(config.RECEIVE_PATH, response_class=HTMLResponse)
    async def receive_file(request: Request):
        receiver = request.app.state.upload_receiver
        filename = await receiver.receive(request)
        logger.info(f"File received: {filename}")
        return HTMLResponse(CONFIRMATION_TEMPLATE.format(filename=html.escape(filename)))

    return router
