import json

import pytest
import requests

from prizmdoc_client import main as main_module
from prizmdoc_client.errors import ConversionFailedError, UnexpectedResponseError

BASE_URL = "http://localhost:18681"


def _json(body: dict) -> dict:
    return {"text": json.dumps(body), "headers": {"Content-Type": "application/json"}}


def _mock_prizmdoc(requests_mock, final_state="complete"):
    requests_mock.post(
        f"{BASE_URL}/PCCIS/V1/WorkFile",
        **_json({"fileId": "input-file", "affinityToken": "node-1"}),
    )
    requests_mock.post(
        f"{BASE_URL}/v2/contentConverters",
        **_json({"processId": "proc-1", "state": "processing"}),
    )
    final = {"processId": "proc-1", "state": final_state}
    if final_state == "complete":
        final["output"] = {"results": [{"fileId": "output-file"}]}
    requests_mock.get(
        f"{BASE_URL}/v2/contentConverters/proc-1",
        [_json({"processId": "proc-1", "state": "processing"}), _json(final)],
    )
    requests_mock.get(
        f"{BASE_URL}/PCCIS/V1/WorkFile/output-file",
        content=b"%PDF-1.7 converted",
        headers={"Content-Type": "application/pdf"},
    )


@pytest.fixture
def no_poll_wait(mocker):
    return mocker.patch("prizmdoc_client.polling.time.sleep")


def test_convert_file(client, requests_mock, tmp_path, no_poll_wait):
    _mock_prizmdoc(requests_mock)
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")
    output_path = tmp_path / "output.pdf"
    session = client.create_affinity_session()

    process = main_module.convert_file(session, input_path, output_path)

    assert process["state"] == "complete"
    assert output_path.read_bytes() == b"%PDF-1.7 converted"

    history = requests_mock.request_history
    assert [(r.method, r.path.lower()) for r in history] == [
        ("POST", "/pccis/v1/workfile"),
        ("POST", "/v2/contentconverters"),
        ("GET", "/v2/contentconverters/proc-1"),
        ("GET", "/v2/contentconverters/proc-1"),
        ("GET", "/pccis/v1/workfile/output-file"),
    ]
    assert history[0].headers["Content-Type"] == "application/octet-stream"
    assert history[1].json() == {
        "input": {"sources": [{"fileId": "input-file"}], "dest": {"format": "pdf"}}
    }
    assert "Accusoft-Affinity-Token" not in history[0].headers
    assert all(r.headers["Accusoft-Affinity-Token"] == "node-1" for r in history[1:])
    assert all(r.headers["Acs-Api-Key"] == "test-api-key" for r in history)


def test_convert_file_raises_when_process_does_not_complete(
    client, requests_mock, tmp_path, no_poll_wait
):
    _mock_prizmdoc(requests_mock, final_state="error")
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")
    output_path = tmp_path / "output.pdf"

    with pytest.raises(ConversionFailedError) as excinfo:
        main_module.convert_file(
            client.create_affinity_session(), input_path, output_path
        )

    assert excinfo.value.state == "error"
    assert not output_path.exists()


def test_main_exits_on_config_error(mocker, monkeypatch, tmp_path):
    logger = mocker.Mock()
    monkeypatch.setattr(
        main_module.structlog, "get_logger", mocker.Mock(return_value=logger)
    )
    monkeypatch.setattr(main_module, "Settings", mocker.Mock(side_effect=ValueError("bad")))
    convert_spy = mocker.patch.object(main_module, "convert_file")

    exit_code = main_module.main([str(tmp_path / "in.docx"), str(tmp_path / "out.pdf")])

    assert exit_code == 2
    logger.error.assert_called_once()
    convert_spy.assert_not_called()


def test_main_converts_file(monkeypatch, requests_mock, tmp_path, no_poll_wait):
    monkeypatch.setenv("PRIZMDOC_URL", BASE_URL)
    monkeypatch.setenv("PRIZMDOC_API_KEY", "cli-key")
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    _mock_prizmdoc(requests_mock)
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")
    output_path = tmp_path / "output.pdf"

    exit_code = main_module.main([str(input_path), str(output_path)])

    assert exit_code == 0
    assert output_path.read_bytes() == b"%PDF-1.7 converted"
    assert requests_mock.request_history[0].headers["Acs-Api-Key"] == "cli-key"


def test_main_reports_failed_conversion(monkeypatch, requests_mock, tmp_path, no_poll_wait):
    monkeypatch.setenv("PRIZMDOC_URL", BASE_URL)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    _mock_prizmdoc(requests_mock, final_state="error")
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")

    exit_code = main_module.main([str(input_path), str(tmp_path / "output.pdf")])

    assert exit_code == 1


def test_main_reports_transport_errors(monkeypatch, requests_mock, tmp_path):
    monkeypatch.setenv("PRIZMDOC_URL", BASE_URL)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    requests_mock.post(
        f"{BASE_URL}/PCCIS/V1/WorkFile", exc=requests.exceptions.ConnectionError
    )
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")

    exit_code = main_module.main([str(input_path), str(tmp_path / "output.pdf")])

    assert exit_code == 1


def test_main_reports_missing_input_file(monkeypatch, tmp_path):
    monkeypatch.setenv("PRIZMDOC_URL", BASE_URL)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)

    exit_code = main_module.main([str(tmp_path / "missing.docx"), str(tmp_path / "out.pdf")])

    assert exit_code == 1


def test_convert_file_raises_when_upload_response_has_no_file_id(
    client, requests_mock, tmp_path
):
    requests_mock.post(f"{BASE_URL}/PCCIS/V1/WorkFile", **_json({"id": "wrong"}))
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")

    with pytest.raises(UnexpectedResponseError, match="fileId"):
        main_module.convert_file(
            client.create_affinity_session(), input_path, tmp_path / "output.pdf"
        )


def test_main_reports_completed_process_without_results(
    monkeypatch, requests_mock, tmp_path, no_poll_wait
):
    monkeypatch.setenv("PRIZMDOC_URL", BASE_URL)
    monkeypatch.setattr(main_module, "configure_logging", lambda settings: None)
    _mock_prizmdoc(requests_mock)
    requests_mock.get(
        f"{BASE_URL}/v2/contentConverters/proc-1",
        **_json({"processId": "proc-1", "state": "complete", "output": {"results": []}}),
    )
    input_path = tmp_path / "input.docx"
    input_path.write_bytes(b"docx bytes")

    exit_code = main_module.main([str(input_path), str(tmp_path / "output.pdf")])

    assert exit_code == 1
    assert not (tmp_path / "output.pdf").exists()
