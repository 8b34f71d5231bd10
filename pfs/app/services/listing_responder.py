import html
import stat
from pathlib import Path
from urllib.parse import quote

import aiofiles.os
from fastapi import HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from pfs import config
from pfs.app.services.directory_lister import list_directory
from pfs.logger_config import setup_logger

logger = setup_logger()

LISTING_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Index of {title}</title>
</head>
<body>
{banner}<h4>Index of {title}</h4>
<pre>
{entries}
</pre>
</body>
</html>
"""

UPLOAD_BANNER = (
    f'<p style="background:#eef;padding:8px;">'
    f'<a href="{config.UPLOAD_PATH}">Upload a file to this server</a></p>\n'
)


def contains_dot_dot(url_path: str) -> bool:
    """Check whether any segment of the URL path is '..'."""
    if ".." not in url_path:
        return False
    return any(part == ".." for part in url_path.replace("\\", "/").split("/"))


def to_http_error(error: OSError) -> HTTPException:
    """Map a filesystem error to an HTTP error without exposing server paths."""
    if isinstance(error, (FileNotFoundError, NotADirectoryError)):
        return HTTPException(status_code=404, detail="404 page not found")
    if isinstance(error, PermissionError):
        return HTTPException(status_code=403, detail="403 Forbidden")
    return HTTPException(status_code=500, detail="500 Internal Server Error")


class ListingResponder:
    """Serves files and directory listings below a root directory.

    When ``add_upload_link`` is set every rendered directory page carries a
    banner linking to the upload form.
    """

    def __init__(self, root: Path, add_upload_link: bool = False):
        self.root = Path(root)
        self.add_upload_link = add_upload_link

    async def respond(self, request: Request, url_path: str) -> Response:
        if contains_dot_dot(url_path):
            raise HTTPException(status_code=400, detail="invalid URL path")

        target = self.root / url_path.lstrip("/")
        try:
            stat_result = await aiofiles.os.stat(target)
        except OSError as e:
            logger.warning(f"Cannot serve /{url_path}: {e.strerror}")
            raise to_http_error(e) from e

        # Decoded route path; request.url re-parses it and would cut at "#" or "?"
        request_path = request.scope["path"]
        if stat.S_ISDIR(stat_result.st_mode):
            if not request_path.endswith("/"):
                return self._redirect(request, request_path + "/")
            try:
                page = await run_in_threadpool(self.render_listing, target, request_path)
            except OSError as e:
                logger.warning(f"Cannot list /{url_path}: {e.strerror}")
                raise to_http_error(e) from e
            return HTMLResponse(page)

        if request_path.endswith("/"):
            return self._redirect(request, request_path.rstrip("/"))

        logger.debug(f"Sending file /{url_path} ({stat_result.st_size} bytes)")
        return FileResponse(target, stat_result=stat_result)

    def render_listing(self, directory: Path, title: str) -> str:
        """Render the HTML listing of ``directory``, re-reading it from disk."""
        lines = []
        for entry in list_directory(directory):
            name = entry.display_name
            link = f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>'
            if not entry.is_dir:
                link += f"  ({entry.size} bytes)"
            lines.append(link)

        return LISTING_TEMPLATE.format(
            title=html.escape(title),
            banner=UPLOAD_BANNER if self.add_upload_link else "",
            entries="\n".join(lines),
        )

    @staticmethod
    def _redirect(request: Request, new_path: str) -> RedirectResponse:
        location = quote(new_path)
        query = request.scope.get("query_string", b"").decode("latin-1")
        if query:
            location += "?" + query
        return RedirectResponse(location, status_code=301)
