import os
import threading
import time
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

import streamreaper.conf.config as cfgmod
import streamreaper.reporter as reporter_mod


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Fresh config singleton per test, no user file, no STREAMREAPER_* env."""
    for key in list(os.environ):
        if key.startswith(cfgmod.ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.setattr(cfgmod, "USER_CONFIG_PATH", tmp_path / "no-user-config.yaml")
    monkeypatch.setattr(cfgmod, "_config", None)
    monkeypatch.setattr(reporter_mod, "_reporter", None)
    yield


def client_error(code: str, operation: str = "DeleteStream") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


class FakeKinesisClient:
    """In-memory stand-in for a boto3 Kinesis client.

    ``pages`` is the list of StreamNames pages returned by the paginator;
    ``page_error_at`` raises while fetching that page index. ``failures``
    (and ``tag_failures``) map a stream name to the exception DeleteStream
    (or ListTagsForStream) raises for it.
    """

    def __init__(
        self,
        pages: list[list[str]] | None = None,
        failures: dict[str, Exception] | None = None,
        tags: dict[str, dict[str, str]] | None = None,
        delay: float = 0.0,
        page_error_at: int | None = None,
        page_error: Exception | None = None,
        tag_failures: dict[str, Exception] | None = None,
    ) -> None:
        self.pages = pages or []
        self.failures = failures or {}
        self.tags = tags or {}
        self.delay = delay
        self.page_error_at = page_error_at
        self.page_error = page_error
        self.tag_failures = tag_failures or {}
        self.deleted: list[dict] = []
        self.tag_calls: list[str] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def get_paginator(self, name: str):
        assert name == "list_streams"
        client = self

        class Paginator:
            def paginate(self, **kwargs):
                for i, names in enumerate(client.pages):
                    if client.page_error_at == i:
                        raise client.page_error or client_error("LimitExceededException", "ListStreams")
                    yield {"StreamNames": list(names), "HasMoreStreams": i < len(client.pages) - 1}

        return Paginator()

    def list_tags_for_stream(self, StreamName: str):
        self.tag_calls.append(StreamName)
        if StreamName in self.tag_failures:
            raise self.tag_failures[StreamName]
        return {"Tags": [{"Key": k, "Value": v} for k, v in self.tags.get(StreamName, {}).items()]}

    def delete_stream(self, **kwargs):
        with self._lock:
            self.deleted.append(kwargs)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            err = self.failures.get(kwargs["StreamName"])
            if err is not None:
                raise err
            return {}
        finally:
            with self._lock:
                self._in_flight -= 1


class FakeSession:
    def __init__(self, client: FakeKinesisClient, regions: list[str] | None = None) -> None:
        self._client = client
        self._regions = regions or ["us-east-1"]
        self.client_calls: list[tuple[str, str | None]] = []

    def client(self, service_name=None, region_name=None):
        self.client_calls.append((service_name, region_name))
        return self._client

    def get_available_regions(self, service_name: str):
        return list(self._regions)


@pytest.fixture
def fake_client_factory():
    return FakeKinesisClient


@pytest.fixture
def fake_session_factory():
    return FakeSession
