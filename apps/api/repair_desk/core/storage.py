from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
import mimetypes
import boto3
from botocore.config import Config
import logging
from botocore.exceptions import ClientError

from .settings import settings
from .storage_keys import folder_object_key

@dataclass(frozen=True)
class StorageConfig:
    endpoint_url: str
    bucket: str
    public_base_url: str | None
    region: str | None = None


@dataclass(frozen=True)
class StoredFile:
    key: str
    url: str


_logged_config = False


def is_object_storage() -> bool:
    return settings.STORAGE_BACKEND == "object"


def get_storage_config() -> StorageConfig:
    global _logged_config
    if not is_object_storage():
        raise RuntimeError("Object storage is not enabled")
    if not all(
        [
            settings.OBJECT_STORAGE_ENDPOINT,
            settings.OBJECT_STORAGE_BUCKET,
        ]
    ):
        raise RuntimeError("Missing object storage configuration")
    cfg = StorageConfig(
        endpoint_url=settings.OBJECT_STORAGE_ENDPOINT or "",
        bucket=(settings.OBJECT_STORAGE_BUCKET or "").strip(),
        public_base_url=settings.OBJECT_STORAGE_PUBLIC_BASE_URL,
        region=settings.OBJECT_STORAGE_REGION,
    )
    if not _logged_config:
        logging.getLogger("storage").info(
            "Object storage config loaded: endpoint=%s bucket=%s public_base=%s",
            cfg.endpoint_url,
            cfg.bucket,
            cfg.public_base_url or "",
        )
        _logged_config = True
    return cfg

def get_s3_client():
    cfg = get_storage_config()
    return boto3.client(
        "s3",
        endpoint_url=cfg.endpoint_url,
        region_name=cfg.region,
        config=Config(s3={"addressing_style": "path"}),
    )

def get_public_url(*, key: str) -> str:
    cfg = get_storage_config()
    if cfg.public_base_url:
        return f"{cfg.public_base_url.rstrip('/')}/{key}"
    return f"{cfg.endpoint_url.rstrip('/')}/{cfg.bucket}/{key}"

def get_presigned_get_url(*, key: str, expires_in: int | None = None) -> str:
    cfg = get_storage_config()
    s3 = get_s3_client()
    return s3.generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": cfg.bucket, "Key": key},
        ExpiresIn=expires_in or settings.UPLOAD_URL_EXPIRES,
    )


def _content_type_for(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


class ObjectStorage:
    """S3 compatible bucket (boto3)."""

    def upload_file(self, *, data: bytes, filename: str, folder: str) -> StoredFile:
        cfg = get_storage_config()
        s3 = get_s3_client()
        key = folder_object_key(folder=folder, filename=filename)
        try:
            s3.upload_fileobj(
                Fileobj=BytesIO(data),
                Bucket=cfg.bucket,
                Key=key,
                ExtraArgs={"ContentType": _content_type_for(filename)},
            )
        except ClientError as exc:
            logging.getLogger("storage").exception("Object storage upload failed: %s", exc)
            raise
        return StoredFile(key=key, url=get_public_url(key=key))


class LocalStorage:
    """Files under LOCAL_UPLOAD_ROOT, served back through /uploads/{key}."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or settings.LOCAL_UPLOAD_ROOT)

    def path_for_key(self, key: str) -> Path:
        if ".." in key:
            raise ValueError("Invalid path")
        path = (self.root / key).resolve()
        if not str(path).startswith(str(self.root.resolve())):
            raise ValueError("Invalid path")
        return path

    def upload_file(self, *, data: bytes, filename: str, folder: str) -> StoredFile:
        key = folder_object_key(folder=folder, filename=filename)
        target_path = self.path_for_key(key)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with open(target_path, "wb") as f:
            f.write(data)
        return StoredFile(key=key, url=f"/uploads/{key}")


def get_storage() -> ObjectStorage | LocalStorage:
    if is_object_storage():
        return ObjectStorage()
    return LocalStorage()
