"""Receives multipart uploads and stores them in the served directory.

The client supplied filename is used verbatim: it is not sanitized against
``..`` segments or absolute paths, so a client can write outside the served
directory or overwrite any file the server process can write. An existing
file with the same name is truncated and replaced (last write wins).
"""
from pathlib import Path

import aiofiles
from fastapi import HTTPException, Request
from starlette.datastructures import UploadFile

from pfs import config
from pfs.logger_config import setup_logger

logger = setup_logger()

UPLOAD_FORM = f"""<html>
<head>
  <title>pfs file server</title>
</head>

<body>

<h4>Choose a file to upload</h4>

<form action="{config.RECEIVE_PATH}" method="post" enctype="multipart/form-data">
  <input type="file" name="file" id="file">
  <br> <br>
  <input type="submit" name="submit" value="Submit">
</form>

</body>
</html>
"""

CREATE_FAILED_MESSAGE = "Unable to create the file for writing. Check your write access privilege"


class UploadReceiver:
    def __init__(self, directory: Path, chunk_size: int = config.CHUNK_SIZE):
        self.directory = Path(directory)
        self.chunk_size = chunk_size

    async def receive(self, request: Request) -> str:
        """Store the ``file`` part of a multipart request.

        Args:
            request: The incoming POST request

        Returns:
            str: The filename the upload was stored under
        """
        # Malformed multipart bodies are rejected by Starlette with a 400
        form = await request.form()
        try:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                logger.warning("Upload request without a 'file' part")
                raise HTTPException(status_code=400, detail="http: no such file")
            if not upload.filename:
                logger.warning("Upload request with an empty filename")
                raise HTTPException(status_code=400, detail="http: no file name")

            await self.store(upload, self.directory / upload.filename)
            return upload.filename
        finally:
            await form.close()

    async def store(self, upload: UploadFile, destination: Path) -> int:
        """Copy the upload stream to ``destination`` and return the bytes written."""
        try:
            out = await aiofiles.open(destination, 'wb')
        except OSError as e:
            logger.error(f"Unable to create {upload.filename}: {e}")
            raise HTTPException(status_code=500, detail=CREATE_FAILED_MESSAGE) from e

        written = 0
        try:
            while chunk := await upload.read(self.chunk_size):
                await out.write(chunk)
                written += len(chunk)
        except OSError as e:
            # The partially written file stays on disk
            logger.error(f"Error writing {upload.filename} after {written} bytes: {e}")
            raise HTTPException(status_code=500, detail=f"Error writing file: {e.strerror}") from e
        finally:
            await out.close()

        logger.debug(f"Wrote {written} bytes to {upload.filename}")
        return written
