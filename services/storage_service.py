# services/storage_service.py
import io
import logging
import mimetypes
import os
import time
import uuid
from typing import Dict, Optional

from PIL import Image, UnidentifiedImageError
from requests_toolbelt.multipart import decoder as mp

from config import Settings
from services.exceptions import BadRequest, Internal

logger = logging.getLogger(__name__)

ALLOWED_CONTENT = {"image/jpeg", "image/png", "image/webp", "image/gif"}
PROFILE_PIC_PREFIX = "profilePics"


# ────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────
def _guess_ext(content_type: str, fallback: str = ".bin") -> str:
    exts = mimetypes.guess_all_extensions(content_type) or []
    return exts[0] if exts else fallback


def _object_name(user_id: str, content_type: str) -> str:
    ext = _guess_ext(content_type, ".jpg")
    return f"{PROFILE_PIC_PREFIX}/{int(time.time() * 1000)}-{user_id}-{uuid.uuid4().hex[:8]}{ext}"


def parse_multipart(req, field: str = "profilePic") -> Dict:
    """
    Parse multipart/form-data from Azure Functions HttpRequest.
    Returns {"filename": ..., "content_type": ..., "data": bytes}
    """
    ctype = req.headers.get("content-type") or req.headers.get("Content-Type")
    if not ctype or "multipart/form-data" not in ctype:
        raise BadRequest("Expected multipart/form-data")

    try:
        parts = mp.MultipartDecoder(req.get_body(), ctype).parts
    except (mp.ImproperBodyPartContentException, mp.NonMultipartContentTypeException) as e:
        raise BadRequest("Malformed multipart body") from e
    if not parts:
        raise BadRequest("No file uploaded")

    file_part = None
    for p in parts:
        disp = p.headers.get(b"Content-Disposition", b"").decode("utf-8", "ignore")
        if f'name="{field}"' in disp:
            file_part = p
            break
    if not file_part:
        raise BadRequest("No file uploaded")

    disp = file_part.headers.get(b"Content-Disposition", b"").decode("utf-8", "ignore")
    filename = None
    for token in disp.split(";"):
        token = token.strip()
        if token.startswith("filename="):
            filename = token.split("=", 1)[1].strip().strip('"')
            break
    content_type = file_part.headers.get(b"Content-Type", b"application/octet-stream").decode("utf-8", "ignore")

    return {"filename": filename or "upload.bin", "content_type": content_type, "data": file_part.content}


def validate_image(content_type: str, data: bytes) -> None:
    if content_type not in ALLOWED_CONTENT:
        raise BadRequest("Unsupported content type")
    if not data:
        raise BadRequest("Empty file")
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise BadRequest("File is not a valid image") from e


# ────────────────────────────────────────────────────────────
# Backends
# ────────────────────────────────────────────────────────────
class LocalFileStorage:
    """Writes uploads under ``root`` and returns ``uploads/<name>`` style paths."""

    def __init__(self, root: str):
        self.root = root

    def save(self, user_id: str, data: bytes, content_type: str) -> str:
        name = _object_name(user_id, content_type)
        path = os.path.join(self.root, *name.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
        return f"{os.path.basename(os.path.normpath(self.root))}/{name}"


class BlobFileStorage:
    """Azure Blob Storage backend; the returned path is the blob name."""

    def __init__(self, conn_str: str, container: str):
        from azure.storage.blob import BlobServiceClient

        self._bsc = BlobServiceClient.from_connection_string(conn_str)
        self.container = container
        self._container_client = None

    def _get_container_client(self):
        if self._container_client is None:
            from azure.core.exceptions import ResourceExistsError

            client = self._bsc.get_container_client(self.container)
            try:
                client.create_container()
            except ResourceExistsError:
                pass
            self._container_client = client
        return self._container_client

    def save(self, user_id: str, data: bytes, content_type: str) -> str:
        from azure.core.exceptions import AzureError
        from azure.storage.blob import ContentSettings

        name = _object_name(user_id, content_type)
        try:
            self._get_container_client().get_blob_client(name).upload_blob(
                data,
                overwrite=False,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            logger.exception("Blob upload failed")
            raise Internal("Image upload failed") from e
        return name


def build_storage(settings: Settings, root: Optional[str] = None):
    if settings.blob_conn_string:
        return BlobFileStorage(settings.blob_conn_string, settings.blob_container)
    return LocalFileStorage(root or settings.upload_dir)
