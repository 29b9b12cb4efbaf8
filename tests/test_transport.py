from prizmdoc_client.client import PrizmDocRestClient
from prizmdoc_client.transport import (
    SharedTransport,
    close_shared_transport,
    get_shared_transport,
)


def test_shared_transport_is_created_once():
    first = get_shared_transport()
    second = get_shared_transport()

    assert first is second


def test_close_shared_transport_creates_a_new_one_next_time():
    first = get_shared_transport()
    close_shared_transport()

    assert first.closed
    assert get_shared_transport() is not first


def test_closed_shared_transport_is_replaced():
    first = get_shared_transport()
    first.close()

    assert get_shared_transport() is not first


def test_adapter_pools_connections_without_retries():
    transport = SharedTransport(pool_maxsize=4)
    adapter = transport._session.get_adapter("https://api.accusoft.com")

    assert adapter.max_retries.total == 0
    assert adapter._pool_maxsize == 4
    transport.close()


def test_transport_sends_with_streaming(requests_mock):
    requests_mock.get("http://localhost:18681/wat", text="ok")
    client = PrizmDocRestClient("http://localhost:18681")

    client.create_affinity_session().get("/wat").close()

    assert requests_mock.last_request.stream is True


def test_transport_is_not_reconfigured_by_requests(client, requests_mock):
    requests_mock.get(
        "http://localhost:18681/wat",
        text='{ "affinityToken": "abc" }',
        headers={"Content-Type": "application/json"},
    )
    transport = get_shared_transport()
    headers_before = dict(transport._session.headers)
    session = client.create_affinity_session()

    session.get("/wat").close()
    session.get("/wat").close()

    assert dict(transport._session.headers) == headers_before
    assert "Acs-Api-Key" not in transport._session.headers


def test_one_connection_pool_serves_every_client():
    one = PrizmDocRestClient("http://one:1")
    two = PrizmDocRestClient("https://two:2")
    session = get_shared_transport()._session

    assert one.transport is two.transport
    assert session.get_adapter("http://one:1") is session.get_adapter("https://two:2")
