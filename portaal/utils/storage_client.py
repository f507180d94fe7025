# file: portaal/utils/storage_client.py

import logging
import mimetypes
import time
from urllib.parse import quote

import boto3
from botocore.client import Config

from portaal.core.settings import Settings

logger = logging.getLogger("storage_client")


def placeholder_url(filename: str) -> str:
    return f"/placeholder.svg?height=200&width=200&text={quote(filename, safe='')}"


class StorageClient:
    """
    Cliente do object storage (S3 compatível: Supabase Storage, R2, MinIO).
    Sem configuração, todo upload devolve uma URL placeholder.
    """

    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self.public_url = (settings.STORAGE_PUBLIC_URL or "").rstrip("/")
        self._client = client

        if self._client is None and settings.storage_configured:
            session = boto3.session.Session()
            self._client = session.client(
                service_name="s3",
                endpoint_url=settings.STORAGE_ENDPOINT,
                aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
                aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
            )

        if self._client is None:
            logger.warning("⚠️ [Storage] Storage não configurado, usando URLs placeholder")

    @property
    def configured(self) -> bool:
        return self._client is not None

    @staticmethod
    def object_key(folder: str, filename: str) -> str:
        folder = folder.strip().strip("/")
        name = f"{int(time.time() * 1000)}-{filename}"
        return f"{folder}/{name}" if folder else name

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_url}/{bucket}/{quote(key)}"

    def upload_bytes(self, content: bytes, filename: str, folder: str, bucket: str, mime: str | None = None) -> str:
        """
        Um único PUT best-effort; qualquer falha vira placeholder.
        """
        if not self.configured:
            return placeholder_url(filename)

        key = self.object_key(folder, filename)
        content_type = mime or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        try:
            self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except Exception as e:
            logger.warning(f"⚠️ [Storage] Upload falhou bucket={bucket} key={key}, usando placeholder: {e}")
            return placeholder_url(filename)

        url = self.get_public_url(bucket, key)
        logger.info(f"[Storage] Upload OK → {url}")
        return url
