# app/services/storage.py
"""
Storage backends for the survey collection.
Set STORAGE_BACKEND env var to 'local', 's3' or 'memory' to switch.

Every backend replaces a document in one step (temp file + rename locally,
a single put_object on S3), so readers never see a half-written JSON file.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)

DOCUMENT_MODE = 0o644


class StorageFailure(Exception):
    """The persistence medium is unreachable or holds an unparsable document."""


class StorageBackend:
    """Abstract storage interface"""

    def write_file(self, path: str, content: bytes) -> str:
        """Replace file content, return local path or object URL"""
        raise NotImplementedError

    def write_text(self, path: str, content: str) -> str:
        return self.write_file(path, content.encode("utf-8"))

    def write_json(self, path: str, data: dict) -> str:
        content = json.dumps(data, ensure_ascii=False, indent=2)
        return self.write_text(path, content)

    def read_file(self, path: str) -> bytes:
        raise NotImplementedError

    def read_text(self, path: str) -> str:
        try:
            return self.read_file(path).decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageFailure(f"{path} is not valid UTF-8") from e

    def read_json(self, path: str) -> dict:
        try:
            data = json.loads(self.read_text(path))
        except json.JSONDecodeError as e:
            raise StorageFailure(f"{path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageFailure(f"{path} does not hold a JSON object")
        return data

    def exists(self, path: str) -> bool:
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Local filesystem storage"""

    def __init__(self, base_dir: str = "data"):
        self.base_dir = Path(base_dir)

    def _full_path(self, path: str) -> Path:
        return self.base_dir / path

    def write_file(self, path: str, content: bytes) -> str:
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=full_path.parent, prefix=f".{full_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                # mkstemp creates files as 0600
                os.chmod(tmp_name, DOCUMENT_MODE)
                os.replace(tmp_name, full_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageFailure(f"Cannot write {full_path}: {e}") from e
        return str(full_path)

    def read_file(self, path: str) -> bytes:
        full_path = self._full_path(path)
        try:
            with open(full_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise StorageFailure(f"Cannot read {full_path}: {e}") from e

    def exists(self, path: str) -> bool:
        full_path = self._full_path(path)
        try:
            return full_path.exists()
        except OSError as e:
            raise StorageFailure(f"Cannot reach {full_path}: {e}") from e


class S3Storage(StorageBackend):
    """AWS S3 storage backend"""

    def __init__(self, bucket: str, region: str = "ap-southeast-1"):
        self.bucket = bucket
        self.region = region
        self._client = None

    @property
    def client(self):
        """Lazy load boto3 client"""
        if self._client is None:
            import boto3
            self._client = boto3.client("s3", region_name=self.region)
        return self._client

    def _s3_key(self, path: str) -> str:
        return path.replace("\\", "/")

    def write_file(self, path: str, content: bytes) -> str:
        key = self._s3_key(path)
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=content)
        except (BotoCoreError, ClientError) as e:
            raise StorageFailure(f"Cannot write s3://{self.bucket}/{key}: {e}") from e
        return f"s3://{self.bucket}/{key}"

    def read_file(self, path: str) -> bytes:
        key = self._s3_key(path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageFailure(f"Cannot read s3://{self.bucket}/{key}: {e}") from e

    def exists(self, path: str) -> bool:
        key = self._s3_key(path)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageFailure(f"Cannot reach s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageFailure(f"Cannot reach s3://{self.bucket}/{key}: {e}") from e


class MemoryStorage(StorageBackend):
    """Process-local dict storage, used by tests and throwaway runs"""

    def __init__(self):
        self._files: dict[str, bytes] = {}
        self._guard = threading.Lock()

    def write_file(self, path: str, content: bytes) -> str:
        with self._guard:
            self._files[path] = bytes(content)
        return f"memory://{path}"

    def read_file(self, path: str) -> bytes:
        with self._guard:
            try:
                return self._files[path]
            except KeyError as e:
                raise StorageFailure(f"memory://{path} does not exist") from e

    def exists(self, path: str) -> bool:
        with self._guard:
            return path in self._files


def build_storage(backend: str) -> StorageBackend:
    """Create the backend named by ``backend`` from the current settings."""
    if backend == "s3":
        logger.info("Storage: S3 bucket=%s region=%s", settings.s3_bucket, settings.aws_region)
        return S3Storage(bucket=settings.s3_bucket, region=settings.aws_region)
    if backend == "memory":
        logger.info("Storage: in-memory")
        return MemoryStorage()
    if backend != "local":
        raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}")
    logger.info("Storage: local filesystem at %s", settings.data_dir)
    return LocalStorage(base_dir=settings.data_dir)


# Global storage instance
_storage: Optional[StorageBackend] = None


def get_storage() -> StorageBackend:
    """Get storage backend singleton"""
    global _storage
    if _storage is None:
        _storage = build_storage(settings.storage_backend)
    return _storage
