from datetime import datetime, timezone
from unittest.mock import MagicMock

from docker.errors import DockerException, NotFound

import pytest

from friendlyfire import docker_ops
from friendlyfire.docker_ops import EPOCH, DockerRuntime, parse_started_at, short_id


def _container(cid, labels=None, started_at=None):
    c = MagicMock()
    c.id = cid
    c.labels = labels or {}
    c.attrs = {"Id": cid, "State": {"StartedAt": started_at}}
    return c


def test_parse_started_at_handles_nanoseconds():
    dt = parse_started_at("2024-03-05T10:20:30.123456789Z")
    assert dt == datetime(2024, 3, 5, 10, 20, 30, 123456, tzinfo=timezone.utc)


def test_parse_started_at_without_fraction():
    assert parse_started_at("2024-03-05T10:20:30Z") == datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", [None, "", "garbage"])
def test_parse_started_at_falls_back_to_epoch(raw):
    assert parse_started_at(raw) == EPOCH


def test_never_started_sorts_before_epoch():
    assert parse_started_at("0001-01-01T00:00:00Z") < EPOCH


def test_short_id():
    assert short_id("0123456789abcdef") == "012345678"


def test_list_containers_maps_ids_and_labels():
    client = MagicMock()
    client.containers.list.return_value = [
        _container("aaa", {"com.docker.compose.service": "web"}),
        _container("bbb", None),
    ]
    rt = DockerRuntime(client=client)

    out = rt.list_containers()

    assert [c.id for c in out] == ["aaa", "bbb"]
    assert out[0].labels == {"com.docker.compose.service": "web"}
    assert out[1].labels == {}


def test_inspect_reads_started_at():
    client = MagicMock()
    client.containers.get.return_value = _container("aaa", started_at="2024-01-02T03:04:05.5Z")
    rt = DockerRuntime(client=client)

    st = rt.inspect("aaa")

    client.containers.get.assert_called_once_with("aaa")
    assert st.id == "aaa"
    assert st.started_at == datetime(2024, 1, 2, 3, 4, 5, 500000, tzinfo=timezone.utc)


def test_stop_and_start_use_container_handle():
    client = MagicMock()
    cont = _container("aaa")
    client.containers.get.return_value = cont
    rt = DockerRuntime(client=client, stop_timeout_s=3)

    rt.stop("aaa")
    rt.start("aaa")

    cont.stop.assert_called_once_with(timeout=3)
    cont.start.assert_called_once_with()


def test_stale_id_propagates_not_found():
    client = MagicMock()
    client.containers.get.side_effect = NotFound("No such container: gone")
    rt = DockerRuntime(client=client)

    with pytest.raises(NotFound):
        rt.stop("gone")


def test_ping():
    client = MagicMock()
    assert DockerRuntime(client=client).ping() is True
    client.ping.side_effect = DockerException("down")
    assert DockerRuntime(client=client).ping() is False


def test_client_is_built_on_first_use(monkeypatch):
    calls = []

    def unreachable(host, port):
        calls.append((host, port))
        raise DockerException("Error while fetching server API version")

    monkeypatch.setattr(docker_ops, "_client", unreachable)
    rt = DockerRuntime(host="docker.internal", port="2375")
    assert calls == []

    assert rt.ping() is False
    with pytest.raises(DockerException):
        rt.list_containers()
    assert calls == [("docker.internal", "2375")] * 2


def test_client_uses_tcp_when_host_and_port_given(monkeypatch):
    seen = {}
    monkeypatch.setattr(docker_ops.docker, "DockerClient", lambda base_url: seen.setdefault("url", base_url))
    monkeypatch.setattr(docker_ops.docker, "from_env", lambda: pytest.fail("from_env should not be used"))

    docker_ops._client("docker.internal", "2375")

    assert seen["url"] == "tcp://docker.internal:2375"


def test_client_falls_back_to_environment(monkeypatch):
    sentinel = object()
    monkeypatch.setattr(docker_ops.docker, "from_env", lambda: sentinel)

    assert docker_ops._client("docker.internal", None) is sentinel
    assert docker_ops._client(None, None) is sentinel
