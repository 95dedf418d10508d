# tests/conftest.py
import io, json, zipfile
import pytest

from appinv.config.loader import Settings


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", text=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = content
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Replays queued responses per (method, url-substring) route, recording calls."""
    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, method, url_part, *responses):
        self.routes.append((method.upper(), url_part, list(responses)))
        return self

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        for m, part, queue in self.routes:
            if m == method and part in url:
                if not queue:
                    raise AssertionError(f"no responses left for {method} {url}")
                r = queue.pop(0)
                if isinstance(r, Exception):
                    raise r
                return r
        raise AssertionError(f"unexpected {method} {url}")

    def calls_to(self, method, url_part):
        return [c for c in self.calls if c["method"] == method and url_part in c["url"]]


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_zip(files):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        subscription_id="sub-1",
        tenant_id="contoso.onmicrosoft.com",
        resource_group="rg-reports",
        storage_account="streports",
        container="appinv",
        client_id="11111111-2222-3333-4444-555555555555",
        client_secret="s3cr+t/value=",
        work_dir=str(tmp_path / "work"),
    )


class FakeStorageAccounts:
    def __init__(self, owner):
        self.owner = owner

    def get_properties(self, resource_group, account_name):
        self.owner.lookups.append((resource_group, account_name))
        if self.owner.error:
            raise self.owner.error
        endpoints = type("Endpoints", (), {"blob": self.owner.blob_endpoint})()
        return type("Account", (), {"primary_endpoints": endpoints})()


class FakeStorageManagement:
    """Stands in for StorageManagementClient(credential, subscription_id)."""
    def __init__(self, blob_endpoint="https://streports.blob.core.windows.net/", error=None):
        self.blob_endpoint = blob_endpoint
        self.error = error
        self.subscriptions = []
        self.lookups = []

    def __call__(self, credential, subscription_id):
        self.subscriptions.append(subscription_id)
        self.storage_accounts = FakeStorageAccounts(self)
        return self
