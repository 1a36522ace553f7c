import pytest
import requests

from og_uploader.errors import ImageFetchError
from og_uploader.image_source import MAX_REDIRECTS, ImageSource

from conftest import FakeResponse


class FakeResponseWithStatus(FakeResponse):
    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def test_fetch_returns_body(mocker):
    session = requests.Session()
    get = mocker.patch.object(session, "get", return_value=FakeResponseWithStatus(200, b"\xff\xd8jpeg"))
    source = ImageSource("https://img.example/800/600", session=session)

    assert source.fetch() == b"\xff\xd8jpeg"
    get.assert_called_once_with("https://img.example/800/600", timeout=30, allow_redirects=True)
    assert session.max_redirects == MAX_REDIRECTS == 5
    assert "Mozilla/5.0" in session.headers["User-Agent"]


def test_http_error_becomes_fetch_error(mocker):
    session = requests.Session()
    mocker.patch.object(session, "get", return_value=FakeResponseWithStatus(503, b""))
    with pytest.raises(ImageFetchError, match="503"):
        ImageSource(session=session).fetch()


def test_too_many_redirects_becomes_fetch_error(mocker):
    session = requests.Session()
    mocker.patch.object(session, "get", side_effect=requests.TooManyRedirects("Exceeded 5 redirects."))
    with pytest.raises(ImageFetchError, match="redirects"):
        ImageSource(session=session).fetch()


def test_empty_body_rejected(mocker):
    session = requests.Session()
    mocker.patch.object(session, "get", return_value=FakeResponseWithStatus(200, b""))
    with pytest.raises(ImageFetchError, match="Empty"):
        ImageSource(session=session).fetch()
