"""Tests for YouTube page helpers, playability checks and the extractor."""

import asyncio
import json

import pytest

from streamcipher.extractors.base import ExtractionError
from streamcipher.extractors.youtube import (
    YouTubeExtractor,
    extract_signature_timestamp,
    get_html5player,
    get_video_id,
    is_age_restricted,
    is_not_yet_broadcasted,
    is_play_error,
    is_private_video,
    is_rental,
    normalize_player_url,
    validate_id,
)
from streamcipher.models.enums import MediaType, Quality

PLAYER_PATH = "/s/player/3bb1f723/player_ias.vflset/en_US/base.js"
PLAYER_URL = f"https://www.youtube.com{PLAYER_PATH}"
VIDEO_ID = "dQw4w9WgXcQ"


class FakeHTTP:
    """Serves canned bodies by URL substring."""

    def __init__(self, pages=None, player_response=None):
        self.pages = pages or {}
        self.player_response = player_response
        self.requested = []
        self.closed = False

    async def get_text(self, url, **kwargs):
        self.requested.append(url)
        for marker, body in self.pages.items():
            if marker in url:
                return body
        raise AssertionError(f"unexpected GET {url}")

    async def post_json(self, url, **kwargs):
        self.requested.append(url)
        return self.player_response

    async def close(self):
        self.closed = True


def watch_page(player_response):
    return (
        "<html><head>"
        f'<script src="{PLAYER_PATH}" name="player_ias/base"></script>'
        "</head><body><script>"
        f"var ytInitialPlayerResponse = {json.dumps(player_response)};"
        "var meta = {};</script></body></html>"
    )


@pytest.fixture(autouse=True)
def clear_caches():
    YouTubeExtractor._player_cache.clear()
    YouTubeExtractor._functions_cache.clear()
    yield
    YouTubeExtractor._player_cache.clear()
    YouTubeExtractor._functions_cache.clear()


@pytest.fixture
def player_response():
    return {
        "playabilityStatus": {"status": "OK"},
        "videoDetails": {"videoId": VIDEO_ID, "title": "Test video", "lengthSeconds": "212"},
        "streamingData": {
            "formats": [
                {
                    "itag": 18,
                    "signatureCipher": (
                        "s=xyz&sp=sig&url=https%3A%2F%2Frr1.googlevideo.com"
                        "%2Fvideoplayback%3Fitag%3D18%26n%3Dabcd"
                    ),
                    "mimeType": 'video/mp4; codecs="avc1.42001E, mp4a.40.2"',
                    "contentLength": "11043240",
                    "qualityLabel": "360p",
                    "audioQuality": "AUDIO_QUALITY_LOW",
                }
            ],
            "adaptiveFormats": [
                {
                    "itag": 251,
                    "url": "https://rr1.googlevideo.com/videoplayback?itag=251&n=efgh",
                    "mimeType": 'audio/webm; codecs="opus"',
                    "bitrate": 140000,
                    "audioQuality": "AUDIO_QUALITY_MEDIUM",
                }
            ],
        },
    }


class TestVideoId:
    @pytest.mark.parametrize(
        "value",
        [
            VIDEO_ID,
            f"https://www.youtube.com/watch?v={VIDEO_ID}",
            f"https://www.youtube.com/watch?v={VIDEO_ID}&t=42s",
            f"https://m.youtube.com/watch?v={VIDEO_ID}",
            f"https://youtu.be/{VIDEO_ID}",
            f"https://www.youtube.com/shorts/{VIDEO_ID}",
            f"https://www.youtube.com/embed/{VIDEO_ID}",
        ],
    )
    def test_valid(self, value):
        assert get_video_id(value) == VIDEO_ID

    @pytest.mark.parametrize(
        "value",
        [
            "not a video",
            "short",
            f"https://example.com/watch?v={VIDEO_ID}",
            "https://www.youtube.com/feed/trending",
        ],
    )
    def test_invalid(self, value):
        assert get_video_id(value) is None

    def test_validate_id(self):
        assert validate_id(VIDEO_ID)
        assert not validate_id("dQw4w9WgXc!")


class TestPageHelpers:
    def test_html5player_script_tag(self):
        assert get_html5player(watch_page({})) == PLAYER_PATH

    def test_html5player_js_url(self):
        body = r'{"jsUrl":"\/s\/player\/3bb1f723\/player_ias.vflset\/en_US\/base.js"}'
        assert get_html5player(body) == PLAYER_PATH

    def test_html5player_missing(self):
        assert get_html5player("<html></html>") is None

    def test_normalize_relative_path(self):
        assert normalize_player_url(PLAYER_PATH) == PLAYER_URL

    def test_normalize_absolute_url(self):
        assert normalize_player_url(PLAYER_URL) == PLAYER_URL

    @pytest.mark.parametrize(
        "url", ["https://evil.example/base.js", "//evil.example/base.js", "http://127.0.0.1/x.js"]
    )
    def test_foreign_host_rejected(self, url):
        with pytest.raises(ExtractionError) as exc:
            normalize_player_url(url)
        assert exc.value.error_code == "youtube.invalid_player_url"

    def test_signature_timestamp(self):
        assert extract_signature_timestamp("x={signatureTimestamp:19834,y:1}") == 19834
        assert extract_signature_timestamp("var a=1;") is None


class TestPlayability:
    def test_private(self):
        assert is_private_video({"playabilityStatus": {"status": "LOGIN_REQUIRED"}})
        assert not is_private_video({"playabilityStatus": {"status": "OK"}})

    def test_rental(self):
        response = {
            "playabilityStatus": {
                "status": "UNPLAYABLE",
                "errorScreen": {"playerLegacyDesktopYpcOfferRenderer": {}},
            }
        }
        assert is_rental(response)
        assert not is_rental({"playabilityStatus": {"status": "UNPLAYABLE"}})

    def test_not_yet_broadcasted(self):
        assert is_not_yet_broadcasted({"playabilityStatus": {"status": "LIVE_STREAM_OFFLINE"}})

    def test_play_error(self):
        response = {"playabilityStatus": {"status": "ERROR"}}
        assert is_play_error(response, ["ERROR"])
        assert not is_play_error(response, ["UNPLAYABLE"])
        assert not is_play_error({}, ["ERROR"])

    def test_age_restricted(self):
        media = {"category": "Music", "category_url": "https://support.google.com/youtube/?p=age_restrictions"}
        assert is_age_restricted(media)
        assert not is_age_restricted({"category": "Music"})
        assert not is_age_restricted(None)


class TestYouTubeExtractor:
    def _extractor(self, http, invoker):
        return YouTubeExtractor(http=http, invoker=invoker)

    def test_extract(self, player_js, invoker, player_response):
        http = FakeHTTP(pages={"/watch?v=": watch_page(player_response), "base.js": player_js})
        extractor = self._extractor(http, invoker)

        result = asyncio.run(extractor.extract(VIDEO_ID))

        assert result.video_id == VIDEO_ID
        assert result.title == "Test video"
        assert result.duration == 212
        assert result.age_restricted is False
        assert result.player_url == PLAYER_URL
        assert result.functions == ["decipher", "n_transform"]
        assert [f.itag for f in result.formats] == [18, 251]
        assert result.formats[0].url == (
            "https://rr1.googlevideo.com/videoplayback?itag=18&n=ABCD&sig=zyx"
        )
        assert result.formats[1].url.endswith("n=EFGH")
        assert result.chosen.itag == 18

    def test_extract_audio(self, player_js, invoker, player_response):
        http = FakeHTTP(pages={"/watch?v=": watch_page(player_response), "base.js": player_js})
        result = asyncio.run(
            self._extractor(http, invoker).extract(VIDEO_ID, MediaType.AUDIO, Quality.LOWEST)
        )
        assert result.chosen.itag == 251

    def test_no_matching_format(self, player_js, invoker, player_response):
        http = FakeHTTP(pages={"/watch?v=": watch_page(player_response), "base.js": player_js})
        result = asyncio.run(self._extractor(http, invoker).extract(VIDEO_ID, MediaType.VIDEO))
        assert result.chosen is None
        assert result.error_code == "formats.empty"
        assert len(result.formats) == 2

    def test_falls_back_to_innertube(self, player_js, invoker, player_response):
        page = watch_page({"playabilityStatus": {"status": "OK"}})
        http = FakeHTTP(
            pages={"/watch?v=": page, "base.js": player_js}, player_response=player_response
        )
        result = asyncio.run(self._extractor(http, invoker).extract(VIDEO_ID))
        assert any("/youtubei/v1/player" in url for url in http.requested)
        assert result.chosen.itag == 18

    def test_private_video(self, player_js, invoker):
        page = watch_page({"playabilityStatus": {"status": "LOGIN_REQUIRED"}, "streamingData": {}})
        http = FakeHTTP(pages={"/watch?v=": page, "base.js": player_js})
        with pytest.raises(ExtractionError) as exc:
            asyncio.run(self._extractor(http, invoker).extract(VIDEO_ID))
        assert exc.value.error_code == "youtube.private"

    def test_player_not_found(self, invoker):
        http = FakeHTTP(pages={"/watch?v=": "<html></html>"})
        with pytest.raises(ExtractionError) as exc:
            asyncio.run(self._extractor(http, invoker).extract(VIDEO_ID))
        assert exc.value.error_code == "youtube.player_not_found"

    def test_player_functions_cached(self, player_js, invoker):
        http = FakeHTTP(pages={"base.js": player_js})
        extractor = self._extractor(http, invoker)

        async def run():
            first = await extractor.get_player_functions(PLAYER_PATH)
            second = await extractor.get_player_functions(PLAYER_URL)
            return first, second

        first, second = asyncio.run(run())
        assert first is second
        assert http.requested == [PLAYER_URL]

    def test_close_closes_http(self, invoker):
        http = FakeHTTP()
        extractor = self._extractor(http, invoker)
        asyncio.run(extractor.close())
        assert http.closed is True
