"""Tests for the platform downloaders against mocked provider APIs."""

from datetime import datetime, timezone

import httpx
import pytest

from sns_relay.core.errors import ContentError, FetchError, ParseError
from sns_relay.core.models import MediaFile, PlatformLink, PostData, TwitterMetadata
from sns_relay.downloaders.instagram_post import InstagramPostDownloader
from sns_relay.downloaders.tiktok import TikTokDownloader
from sns_relay.downloaders.twitter import TwitterDownloader
from sns_relay.jobs.polling import JobPoller

from conftest import json_response

TWEET = {
    "code": 200,
    "message": "OK",
    "tweet": {
        "id": "123",
        "text": "hello",
        "author": {"screen_name": "user"},
        "created_timestamp": 1696176000,  # 2023-10-01T16:00:00Z
        "media": {
            "all": [
                {"type": "photo", "url": "https://pbs.twimg.com/media/AAA.jpg"},
                {"type": "video", "url": "https://video.twimg.com/vid/BBB.mp4"},
            ]
        },
        "translation": {"text": "hi", "source_lang_en": "Korean"},
    },
}


def media_handler(request: httpx.Request) -> httpx.Response | None:
    host = request.url.host
    if host in ("pbs.twimg.com", "video.twimg.com", "cdn.example.com"):
        return httpx.Response(200, content=f"bytes:{request.url.path}".encode())
    return None


def twitter_link() -> PlatformLink:
    return PlatformLink(
        url="https://twitter.com/user/status/123",
        metadata=TwitterMetadata(username="user", post_id="123"),
    )


class TestTwitterDownloader:
    def test_build_api_request(self, mock_client):
        dl = TwitterDownloader(mock_client(lambda r: httpx.Response(500)))
        request = dl.build_api_request(twitter_link())

        assert str(request.url) == "https://api.fxtwitter.com/user/status/123/en"
        assert request.headers["User-Agent"] == "sns-relay-tests"

    @pytest.mark.asyncio
    async def test_fetch_content(self, mock_client):
        def handler(request):
            if request.url.host == "api.fxtwitter.com":
                return json_response(TWEET)
            return media_handler(request)

        dl = TwitterDownloader(mock_client(handler))
        updates = []

        async def progress(update):
            updates.append(update)

        posts = await dl.fetch_content(twitter_link(), progress)

        assert len(posts) == 1
        post = posts[0]
        assert post.author_handle == "user"
        assert post.post_id == "123"
        assert post.translated_text == "hi"
        assert post.translated_language == "Korean"
        assert post.timestamp == datetime(2023, 10, 1, 16, tzinfo=timezone.utc)
        assert [f.extension for f in post.files] == ["jpg", "mp4"]
        assert post.files[0].data == b"bytes:/media/AAA.jpg"
        assert updates[-1].done

    @pytest.mark.asyncio
    async def test_photo_requested_in_original_quality(self, mock_client):
        requested = []

        def handler(request):
            if request.url.host == "api.fxtwitter.com":
                return json_response(TWEET)
            requested.append(str(request.url))
            return media_handler(request)

        await TwitterDownloader(mock_client(handler)).fetch_content(twitter_link())

        assert "https://pbs.twimg.com/media/AAA.jpg?name=orig" in requested
        assert "https://video.twimg.com/vid/BBB.mp4" in requested

    @pytest.mark.asyncio
    async def test_non_success_status(self, mock_client):
        dl = TwitterDownloader(mock_client(lambda r: json_response({"code": 404, "message": "NOT_FOUND"}, 404)))

        with pytest.raises(FetchError) as exc_info:
            await dl.fetch_content(twitter_link())
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_body(self, mock_client):
        dl = TwitterDownloader(mock_client(lambda r: httpx.Response(200, content=b"<html>")))

        with pytest.raises(ParseError):
            await dl.fetch_content(twitter_link())

    @pytest.mark.asyncio
    async def test_missing_tweet(self, mock_client):
        dl = TwitterDownloader(mock_client(lambda r: json_response({"code": 200, "message": "gone"})))

        with pytest.raises(ContentError):
            await dl.fetch_content(twitter_link())

    def test_build_messages(self, mock_client):
        dl = TwitterDownloader(mock_client(lambda r: httpx.Response(500)))
        post = PostData(
            source_link=twitter_link(),
            author_handle="user",
            post_id="123",
            timestamp=datetime(2023, 10, 1, 16, tzinfo=timezone.utc),
            files=tuple(MediaFile(extension="jpg", data=b"x") for _ in range(12)),
        )

        batches = dl.build_attachment_batches(post, chat_id="42")
        assert [len(b.attachments) for b in batches] == [10, 2]
        assert batches[0].attachments[0].filename == "twitter-user-123-1.jpg"
        assert batches[1].attachments[-1].filename == "twitter-user-123-12.jpg"
        assert all(b.text == "PLS DON'T DELETE ME !!! or it will break the image links" for b in batches)

        messages = dl.build_content_messages(post, ["https://cdn/1.jpg"], chat_id="42", reply_to_message_id="9")
        assert len(messages) == 1
        assert messages[0].text == (
            "`231002 user Twitter Update`\n<https://x.com/user/status/123>\nhttps://cdn/1.jpg\n"
        )
        assert messages[0].suppress_embeds and messages[0].suppress_mentions
        assert messages[0].reply_to_message_id == "9"


class TestDownloadMedia:
    @pytest.mark.asyncio
    async def test_order_matches_input(self, mock_client):
        dl = TwitterDownloader(mock_client(media_handler))
        urls = [f"https://cdn.example.com/{i}.png" for i in range(5)]

        files = await dl.download_media(urls)

        assert [f.data for f in files] == [f"bytes:/{i}.png".encode() for i in range(5)]
        assert {f.extension for f in files} == {"png"}

    @pytest.mark.asyncio
    async def test_single_failure_fails_batch(self, mock_client):
        def handler(request):
            if request.url.path == "/bad.jpg":
                return httpx.Response(403)
            return media_handler(request)

        dl = TwitterDownloader(mock_client(handler))

        with pytest.raises(FetchError):
            await dl.download_media(
                ["https://cdn.example.com/a.jpg", "https://cdn.example.com/bad.jpg"]
            )


TIKTOK_BODY = {
    "status": "ok",
    "data": {
        "aweme_detail": {
            "author": {"unique_id": "dancer"},
            "create_time": 1696176000,
            "video": {
                "play_addr": {
                    "url_list": [
                        "https://cdn.example.com/mirror0",
                        "https://cdn.example.com/mirror1",
                        "https://cdn.example.com/mirror2",
                    ]
                }
            },
        }
    },
}


class TestTikTokDownloader:
    def link(self, dl):
        return dl.find_links("https://www.tiktok.com/@dancer/video/777")[0]

    @pytest.mark.asyncio
    async def test_fetch_uses_configured_mirror(self, mock_client):
        requested = []

        def handler(request):
            if request.url.host == "tiktok.rapid.test":
                assert request.url.path == "/video/777"
                assert request.headers["x-rapidapi-key"] == "key"
                return json_response(TIKTOK_BODY)
            requested.append(request.url.path)
            return media_handler(request)

        dl = TikTokDownloader(mock_client(handler), api_key="key", host="tiktok.rapid.test", mirror_index=2)
        posts = await dl.fetch_content(self.link(dl))

        assert requested == ["/mirror2"]
        assert posts[0].author_handle == "dancer"
        assert posts[0].post_id == "777"
        assert posts[0].files[0].extension == "mp4"

    def test_mirror_index_clamped(self, mock_client):
        dl = TikTokDownloader(mock_client(media_handler), api_key="key", mirror_index=5)

        assert dl.select_mirror(["a", "b"]) == "b"

    @pytest.mark.asyncio
    async def test_empty_url_list(self, mock_client):
        body = {"data": {"aweme_detail": {"video": {"play_addr": {"url_list": []}}}}}
        dl = TikTokDownloader(mock_client(lambda r: json_response(body)), api_key="key")

        with pytest.raises(ContentError):
            await dl.fetch_content(self.link(dl))

    @pytest.mark.asyncio
    async def test_rejects_foreign_link_without_request(self, mock_client):
        requests = []
        dl = TikTokDownloader(mock_client(lambda r: requests.append(r)), api_key="key")

        with pytest.raises(TypeError):
            await dl.fetch_content(twitter_link())
        assert requests == []

    def test_canonical_link_is_input_url(self, mock_client):
        dl = TikTokDownloader(mock_client(media_handler), api_key="key")
        post = PostData(source_link=self.link(dl), author_handle="dancer", post_id="777")

        (message,) = dl.build_content_messages(post, [], chat_id="1")
        assert message.text == "`dancer TikTok Update`\n<https://www.tiktok.com/@dancer/video/777>\n"


class TestInstagramPostDownloader:
    @pytest.mark.asyncio
    async def test_submit_poll_retrieve(self, mock_client, fake_clock):
        paths = []

        def handler(request):
            if request.url.host == "api.brightdata.test":
                paths.append(request.url.path)
                if request.url.path.endswith("/trigger"):
                    return json_response({"snapshot_id": "s_9"})
                if "/progress/" in request.url.path:
                    if len(paths) < 4:
                        return json_response({}, 404)
                    return json_response({"status": "ready"})
                return json_response(
                    [
                        {
                            "url": "https://www.instagram.com/p/ABC/",
                            "user_posted": "poster",
                            "post_id": "3141",
                            "description": "caption",
                            "timestamp": "2024-05-01T03:00:00.000Z",
                            "post_content": [
                                {"index": 0, "type": "Photo", "url": "https://cdn.example.com/1.heic"},
                                {"index": 1, "type": "Video", "url": "https://cdn.example.com/2.mp4"},
                                {"index": 2, "type": "Photo"},
                            ],
                        }
                    ]
                )
            return media_handler(request)

        client = mock_client(handler)
        dl = InstagramPostDownloader(
            client, api_token="tok", dataset_id="ds", api_base="https://api.brightdata.test/v3"
        )
        dl.poller = JobPoller(
            client, dl.endpoints, timeout=10, interval=1, clock=fake_clock, sleep=fake_clock.sleep
        )
        link = dl.find_links("https://instagram.com/p/ABC/")[0]

        posts = await dl.fetch_content(link)

        assert paths == [
            "/v3/trigger",
            "/v3/progress/s_9",
            "/v3/progress/s_9",
            "/v3/progress/s_9",
            "/v3/snapshot/s_9",
        ]
        post = posts[0]
        assert post.author_handle == "poster"
        assert post.post_id == "3141"
        assert post.source_link.url == "https://www.instagram.com/p/ABC/"
        assert [f.extension for f in post.files] == ["heic", "mp4"]

    @pytest.mark.asyncio
    async def test_empty_snapshot(self, mock_client, fake_clock):
        def handler(request):
            if request.url.path.endswith("/trigger"):
                return json_response({"snapshot_id": "s_9"})
            if "/progress/" in request.url.path:
                return json_response({"status": "ready"})
            return json_response([])

        dl = InstagramPostDownloader(mock_client(handler), api_token="tok", dataset_id="ds")
        link = dl.find_links("https://instagram.com/p/ABC/")[0]

        with pytest.raises(ContentError):
            await dl.fetch_content(link)
