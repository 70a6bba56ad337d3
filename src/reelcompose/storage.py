"""Remote I/O — source download, S3 clip library, S3 artifact store.

Buckets and prefixes come from settings; clients can be injected so the
composition logic never reaches the network in tests.
"""

from pathlib import Path
from urllib.parse import urlparse

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ExternalStageError, MissingInputError
from .library import CLIP_EXTENSIONS, CutawayClip, is_clip_key, make_clip


DOWNLOAD_TIMEOUT_S = 60
DOWNLOAD_CHUNK_BYTES = 1 << 20


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def fetch_source(source: str, dest: str | Path, timeout: float = DOWNLOAD_TIMEOUT_S) -> str:
    """Make the primary video available as a local file.

    Local paths are returned unchanged; http(s) URLs are streamed to dest.

    Raises:
        MissingInputError: Local file missing, or the download failed.
    """
    if not is_url(source):
        if not Path(source).exists():
            raise MissingInputError(f"Source video not found: {source}")
        return source

    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    print(f"Downloading source: {source}")
    try:
        with requests.get(source, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                    f.write(chunk)
    except requests.RequestException as e:
        raise MissingInputError(f"Could not download source video {source}: {e}") from e
    return str(dest)


def make_s3_client(region: str | None = None):
    return boto3.client("s3", region_name=region)


class S3ClipLibrary:
    """Clip catalog backed by an S3 bucket prefix."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        client=None,
        extensions: tuple[str, ...] = CLIP_EXTENSIONS,
    ):
        self.bucket = bucket
        self.prefix = prefix
        self.client = client or make_s3_client()
        self.extensions = extensions

    def list_keys(self) -> list[str]:
        """Keys of every video object under the prefix.

        Raises:
            ExternalStageError: Listing failed.
        """
        keys = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
                for obj in page.get("Contents", []):
                    if is_clip_key(obj["Key"], self.extensions):
                        keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise ExternalStageError("list_clips", f"s3://{self.bucket}/{self.prefix}: {e}") from e
        return sorted(keys)

    def fetch(self, key: str, dest_dir: str | Path) -> CutawayClip:
        """Download one clip into dest_dir and probe its duration.

        Raises:
            MissingInputError: Object missing or download failed.
        """
        local_path = Path(dest_dir) / ("broll_" + key.replace("/", "_"))
        try:
            self.client.download_file(self.bucket, key, str(local_path))
        except (ClientError, BotoCoreError) as e:
            raise MissingInputError(f"Could not fetch cutaway s3://{self.bucket}/{key}: {e}") from e
        return make_clip(local_path, key)


class ArtifactStore:
    """Durable output storage; returns a public URL per uploaded artifact."""

    def __init__(self, bucket: str, client=None, region: str | None = None):
        self.bucket = bucket
        self.client = client or make_s3_client(region)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload(self, path: str | Path, key: str) -> str:
        """Upload a file and return its URL.

        Raises:
            ExternalStageError: Upload failed.
        """
        try:
            self.client.upload_file(
                str(path), self.bucket, key,
                ExtraArgs={"ContentType": "video/mp4"},
            )
        except (ClientError, BotoCoreError) as e:
            raise ExternalStageError("upload", f"s3://{self.bucket}/{key}: {e}") from e
        url = self.url_for(key)
        print(f"  UPLOAD {url}")
        return url
