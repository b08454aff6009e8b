import pytest
import requests

from finance_tracker.ocr import OcrService

from conftest import make_config


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


def test_returns_none_without_api_key(tmp_path, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("OCR service must not be called without a key")

    monkeypatch.setattr(requests, "post", fail)

    assert OcrService(make_config(tmp_path)).recognise_text(b"img") is None


def test_joins_parsed_results(tmp_path, monkeypatch):
    calls = {}

    def fake_post(url, files, data, timeout):
        calls.update(url=url, files=files, data=data)
        return FakeResponse(
            {
                "IsErroredOnProcessing": False,
                "ParsedResults": [{"ParsedText": "SHOP\nTOTAL 5.00"}, {"ParsedText": "Thanks"}],
            }
        )

    monkeypatch.setattr(requests, "post", fake_post)
    service = OcrService(make_config(tmp_path, ocr_api_key="key-123"))

    assert service.recognise_text(b"img", "r.png") == "SHOP\nTOTAL 5.00\nThanks"
    assert calls["url"] == "https://ocr.invalid/parse/image"
    assert calls["data"]["apikey"] == "key-123"
    assert calls["files"]["file"] == ("r.png", b"img")


def test_processing_error_degrades_to_none(tmp_path, monkeypatch):
    monkeypatch.setattr(
        requests,
        "post",
        lambda *args, **kwargs: FakeResponse({"IsErroredOnProcessing": True, "ErrorMessage": ["bad image"]}),
    )

    assert OcrService(make_config(tmp_path, ocr_api_key="k")).recognise_text(b"img") is None


def test_http_errors_are_raised(tmp_path, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse({}, status_code=502))

    with pytest.raises(requests.HTTPError):
        OcrService(make_config(tmp_path, ocr_api_key="k")).recognise_text(b"img")


@pytest.mark.parametrize("payload", ["The API key is invalid", ["unexpected"], None])
def test_non_object_payload_degrades_to_none(tmp_path, monkeypatch, payload):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(payload))

    assert OcrService(make_config(tmp_path, ocr_api_key="k")).recognise_text(b"img") is None
