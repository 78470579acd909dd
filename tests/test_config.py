from pathlib import Path

import pytest
from pydantic import ValidationError

from blobmirror.config import load_configuration
from blobmirror.container.client import DEFAULT_ENDPOINT_TEMPLATE
from blobmirror.exceptions import ConfigurationError


def test_load_configuration_defaults():
    config = load_configuration(destination_root="out", account="acct", container="cont")

    assert config.destination_root == Path("out")
    assert config.max_results is None
    assert config.endpoint_template == DEFAULT_ENDPOINT_TEMPLATE
    assert config.concurrency == 8
    assert config.fetch_attempts == 1
    assert config.interleave is False


def test_load_configuration_missing_values():
    with pytest.raises(ConfigurationError) as exc_info:
        load_configuration(destination_root=None, account="acct", container=None)

    assert exc_info.value.fields == ["container", "destination_root"]
    assert "missing required configuration" in str(exc_info.value)


def test_load_configuration_empty_values():
    with pytest.raises(ConfigurationError) as exc_info:
        load_configuration(destination_root=" ", account="", container="cont")

    assert exc_info.value.fields == ["account", "destination_root"]


def test_load_configuration_from_environment(monkeypatch):
    monkeypatch.setenv("BLOBMIRROR_DESTINATION_ROOT", "/data/mirror")
    monkeypatch.setenv("BLOBMIRROR_ACCOUNT", "envacct")
    monkeypatch.setenv("BLOBMIRROR_CONTAINER", "envcont")
    monkeypatch.setenv("BLOBMIRROR_MAX_RESULTS", "500")

    config = load_configuration(container="cont", max_results=None)

    assert config.destination_root == Path("/data/mirror")
    assert config.account == "envacct"
    assert config.container == "cont"
    assert config.max_results == 500


def test_zero_page_size_means_service_default():
    config = load_configuration(
        destination_root="out", account="acct", container="cont", max_results=0
    )

    assert config.max_results is None


def test_invalid_values():
    with pytest.raises(ConfigurationError) as exc_info:
        load_configuration(
            destination_root="out",
            account="acct",
            container="cont",
            concurrency=0,
            endpoint_template="https://example.test/",
        )

    assert exc_info.value.fields == ["concurrency", "endpoint_template"]
    assert "invalid configuration" in str(exc_info.value)


def test_configuration_is_immutable():
    config = load_configuration(destination_root="out", account="acct", container="cont")

    with pytest.raises(ValidationError):
        config.container = "other"


@pytest.mark.parametrize(
    "template",
    [
        "https://{account}.blob.test/{container}/{region}",
        "https://{0}.blob.test/{container}",
        "https://{account.blob.test/{container}",
        "https://{account.name}.blob.test/{container}",
    ],
)
def test_endpoint_template_with_unknown_placeholders(template):
    with pytest.raises(ConfigurationError) as exc_info:
        load_configuration(
            destination_root="out",
            account="acct",
            container="cont",
            endpoint_template=template,
        )

    assert exc_info.value.fields == ["endpoint_template"]


def test_endpoint_template_with_path_prefix():
    config = load_configuration(
        destination_root="out",
        account="devstoreaccount1",
        container="cont",
        endpoint_template="http://127.0.0.1:10000/{account}/{container}",
    )

    assert config.endpoint_template == "http://127.0.0.1:10000/{account}/{container}"
