"""Tests for remote I/O: source download, S3 clip library, artifact store.

boto3 clients and requests are mocked; nothing touches the network.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from botocore.exceptions import ClientError

from reelcompose.errors import ExternalStageError, MissingInputError
from reelcompose.library import CutawayClip
from reelcompose.storage import ArtifactStore, S3ClipLibrary, fetch_source, is_url


def _client_error(code="NoSuchKey", op="GetObject"):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, op)


def _paginating_client(pages):
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = pages
    return client


class TestIsUrl:
    def test_schemes(self):
        assert is_url("https://example.com/v.mp4")
        assert is_url("http://example.com/v.mp4")
        assert not is_url("/tmp/v.mp4")
        assert not is_url("s3://bucket/v.mp4")


class TestFetchSource:
    def test_local_path_returned_unchanged(self, source_video, tmp_path):
        assert fetch_source(str(source_video), tmp_path / "input.mp4") == str(source_video)

    def test_missing_local_path(self, tmp_path):
        with pytest.raises(MissingInputError):
            fetch_source(str(tmp_path / "gone.mp4"), tmp_path / "input.mp4")

    def test_download_streams_to_dest(self, tmp_path):
        response = MagicMock()
        response.iter_content.return_value = [b"abc", b"def"]
        get = MagicMock()
        get.return_value.__enter__.return_value = response
        dest = tmp_path / "work" / "input.mp4"

        with patch("reelcompose.storage.requests.get", get):
            result = fetch_source("https://cdn.example.com/talk.mp4", dest, timeout=5)

        assert result == str(dest)
        assert dest.read_bytes() == b"abcdef"
        get.assert_called_once_with("https://cdn.example.com/talk.mp4", stream=True, timeout=5)
        response.raise_for_status.assert_called_once()

    def test_http_error_is_missing_input(self, tmp_path):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        get = MagicMock()
        get.return_value.__enter__.return_value = response

        with patch("reelcompose.storage.requests.get", get):
            with pytest.raises(MissingInputError, match="404"):
                fetch_source("https://cdn.example.com/gone.mp4", tmp_path / "input.mp4")


class TestS3ClipLibrary:
    def test_lists_clip_keys_across_pages(self):
        client = _paginating_client([
            {"Contents": [{"Key": "broll/"}, {"Key": "broll/z.mp4"}]},
            {"Contents": [{"Key": "broll/a.MOV"}, {"Key": "broll/readme.txt"}]},
            {},
        ])
        library = S3ClipLibrary("clips", prefix="broll/", client=client)

        assert library.list_keys() == ["broll/a.MOV", "broll/z.mp4"]
        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="clips", Prefix="broll/",
        )

    def test_listing_failure(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.side_effect = _client_error(
            "AccessDenied", "ListObjectsV2",
        )
        with pytest.raises(ExternalStageError) as exc:
            S3ClipLibrary("clips", client=client).list_keys()
        assert exc.value.stage == "list_clips"

    def test_fetch_downloads_and_probes(self, tmp_path):
        client = MagicMock()
        library = S3ClipLibrary("clips", client=client)
        with patch("reelcompose.storage.make_clip") as make_clip:
            make_clip.side_effect = lambda path, key: CutawayClip(str(path), 3.0, key)
            clip = library.fetch("broll/city/a.mp4", tmp_path)

        expected = tmp_path / "broll_broll_city_a.mp4"
        client.download_file.assert_called_once_with("clips", "broll/city/a.mp4", str(expected))
        assert clip == CutawayClip(str(expected), 3.0, "broll/city/a.mp4")

    def test_fetch_failure_is_missing_input(self, tmp_path):
        client = MagicMock()
        client.download_file.side_effect = _client_error("404", "HeadObject")
        with pytest.raises(MissingInputError, match="s3://clips/a.mp4"):
            S3ClipLibrary("clips", client=client).fetch("a.mp4", tmp_path)


class TestArtifactStore:
    def test_url_format(self):
        store = ArtifactStore("shorts", client=MagicMock())
        assert store.url_for("processed-1700000000000.mp4") == (
            "https://shorts.s3.amazonaws.com/processed-1700000000000.mp4"
        )

    def test_upload_returns_url(self, tmp_path):
        client = MagicMock()
        out = tmp_path / "final.mp4"
        out.write_bytes(b"video")

        url = ArtifactStore("shorts", client=client).upload(out, "processed-1.mp4")

        assert url == "https://shorts.s3.amazonaws.com/processed-1.mp4"
        client.upload_file.assert_called_once_with(
            str(out), "shorts", "processed-1.mp4",
            ExtraArgs={"ContentType": "video/mp4"},
        )

    def test_upload_failure(self, tmp_path):
        client = MagicMock()
        client.upload_file.side_effect = _client_error("AccessDenied", "PutObject")
        with pytest.raises(ExternalStageError) as exc:
            ArtifactStore("shorts", client=client).upload(tmp_path / "x.mp4", "k.mp4")
        assert exc.value.stage == "upload"
