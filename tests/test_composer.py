"""Tests for MessageComposer."""

import base64
import http.client
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mime_gateway.attachments.base import Fetcher
from mime_gateway.attachments.local import LocalFileStore
from mime_gateway.composer import MessageComposer
from mime_gateway.config import Settings
from mime_gateway.exceptions import AttachmentLoadError, ComposeError, ValidationError
from mime_gateway.message import Message
from mime_gateway.models import AttachmentSpec, TextEncoding

PLAIN_HEADERS = "Content-Type: text/plain; charset=UTF-8\r\nContent-Transfer-Encoding: quoted-printable\r\n\r\n"
HTML_HEADERS = "Content-Type: text/html; charset=UTF-8\r\nContent-Transfer-Encoding: quoted-printable\r\n\r\n"


def _attachment_section(filename: str, mime_type: str, content: bytes) -> str:
    return (
        f'Content-Type: {mime_type}; name="{filename}"\r\n'
        "Content-Transfer-Encoding: base64\r\n"
        f'Content-Disposition: attachment; filename="{filename}"\r\n'
        "\r\n" + base64.b64encode(content).decode("ascii")
    )


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def fetcher() -> MagicMock:
    return MagicMock(spec=Fetcher)


@pytest.fixture
def composer(fetcher: MagicMock, temp_dir: Path) -> MessageComposer:
    settings = Settings(fetch_timeout=30, max_attachment_size=1024 * 1024, temp_dir=temp_dir)
    return MessageComposer(settings, fetcher=fetcher, file_store=LocalFileStore(temp_dir))


@pytest.fixture
def message() -> Message:
    message = Message()
    message.set_from("sender@example.com", "Sender")
    message.set_recipients(["alice@example.com", "bob@example.com"])
    message.set_subject("Hello")
    return message


@pytest.fixture
def files(tmp_path: Path) -> list[Path]:
    first = tmp_path / "notes.txt"
    first.write_bytes(b"first file")
    second = tmp_path / "data.json"
    second.write_bytes(b'{"a": 1}')
    return [first, second]


class TestValidate:
    def test_valid_message(self, composer: MessageComposer, message: Message) -> None:
        composer.validate(message)

    @pytest.mark.parametrize("subject", ["", "   ", "\t"])
    def test_empty_subject(self, composer: MessageComposer, message: Message, subject: str) -> None:
        message.set_subject(subject)

        with pytest.raises(ValidationError) as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "subject"

    def test_subject_checked_before_sender(self, composer: MessageComposer) -> None:
        with pytest.raises(ValidationError) as exc_info:
            composer.validate(Message())

        assert exc_info.value.field == "subject"

    def test_empty_sender(self, composer: MessageComposer, message: Message) -> None:
        message.set_sender_email_address("  ")

        with pytest.raises(ValidationError, match="cannot be empty") as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "sender_email"

    @pytest.mark.parametrize("address", ["not-an-email", "a@", "@example.com", "Sender <s@example.com>"])
    def test_invalid_sender(self, composer: MessageComposer, message: Message, address: str) -> None:
        message.set_sender_email_address(address)

        with pytest.raises(ValidationError, match="valid email address") as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "sender_email"

    def test_empty_recipient(self, composer: MessageComposer, message: Message) -> None:
        message.set_recipients(["alice@example.com", "  "])

        with pytest.raises(ValidationError, match="cannot be empty") as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "recipients"

    def test_first_invalid_recipient_is_reported(self, composer: MessageComposer, message: Message) -> None:
        message.set_recipients(["alice@example.com", "broken@", "also broken"])

        with pytest.raises(ValidationError, match="'broken@'") as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "recipients"

    def test_no_recipients(self, composer: MessageComposer, message: Message) -> None:
        message.set_recipients([])

        with pytest.raises(ValidationError) as exc_info:
            composer.validate(message)

        assert exc_info.value.field == "recipients"


class TestValidateHeaderSafe:
    @pytest.mark.parametrize("value", ["a\rb", "a\nb", "a\r\nb", "\n"])
    def test_unsafe(self, value: str) -> None:
        assert MessageComposer.validate_header_safe(value) is False

    @pytest.mark.parametrize("value", ["", "plain value", "tab\tis fine", "ünïcode"])
    def test_safe(self, value: str) -> None:
        assert MessageComposer.validate_header_safe(value) is True


class TestComposeSinglePart:
    def test_plain_only(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_plain("hello")

        composed = composer.compose(message)

        assert composed.headers == {
            "Content-Type": "text/plain; charset=UTF-8",
            "Content-Transfer-Encoding": "quoted-printable",
        }
        assert composed.body == "hello\r\n"

    def test_html_only(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_html("<p>hello</p>")

        composed = composer.compose(message)

        assert composed.headers["Content-Type"] == "text/html; charset=UTF-8"
        assert composed.body == "<p>hello</p>\r\n"

    def test_base64_body_round_trips(self, composer: MessageComposer, message: Message) -> None:
        text = "Grüße\n" * 40
        message.set_text_plain(text)
        message.set_text_encoding(TextEncoding.BASE64)

        composed = composer.compose(message)

        assert composed.headers["Content-Transfer-Encoding"] == "base64"
        assert not composed.body.endswith("\r\n")
        assert base64.b64decode(composed.body.replace("\r\n", "")).decode("utf-8") == text

    def test_no_encoding(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_plain("raw = text")
        message.set_text_encoding(None)

        composed = composer.compose(message)

        assert composed.headers["Content-Transfer-Encoding"] == "8bit"
        assert composed.body == "raw = text\r\n"

    def test_user_headers_come_first(self, composer: MessageComposer, message: Message) -> None:
        message.append_header_field("X-Mailer", "mime-gateway")
        message.set_text_plain("hello")

        composed = composer.compose(message)

        assert list(composed.headers) == ["X-Mailer", "Content-Type", "Content-Transfer-Encoding"]

    def test_header_collision_is_an_error(self, composer: MessageComposer, message: Message) -> None:
        message.append_header_field("content-type", "text/calendar")
        message.set_text_plain("hello")

        with pytest.raises(ComposeError, match="Content-Type"):
            composer.compose(message)

    def test_empty_message_is_an_error(self, composer: MessageComposer, message: Message) -> None:
        with pytest.raises(ComposeError, match="Can not send empty email"):
            composer.compose(message)

    def test_empty_strings_count_as_absent(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_plain("")
        message.set_text_html("")

        with pytest.raises(ComposeError):
            composer.compose(message)


class TestComposeAlternative:
    def test_plain_and_html(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_plain("plain")
        message.set_text_html("<p>html</p>")
        alt = message.boundary_alternative

        composed = composer.compose(message)

        assert composed.headers == {"Content-Type": f'multipart/alternative; boundary="{alt}"'}
        assert composed.body == (
            f"\r\n--{alt}\r\n" + PLAIN_HEADERS + "plain\r\n"
            f"\r\n--{alt}\r\n" + HTML_HEADERS + "<p>html</p>\r\n"
            f"\r\n--{alt}--\r\n"
        )

    def test_composing_twice_is_repeatable(self, composer: MessageComposer, message: Message) -> None:
        message.set_text_plain("plain")
        message.set_text_html("<p>html</p>")

        first = composer.compose(message)
        second = composer.compose(message)

        assert first == second
        assert message.header_fields == {}


class TestComposeMixed:
    def test_attachments_only(self, composer: MessageComposer, message: Message, files: list[Path]) -> None:
        message.set_attachments([str(f) for f in files])
        mix = message.boundary_mixed

        composed = composer.compose(message)

        assert composed.headers == {"Content-Type": f'multipart/mixed; boundary="{mix}"'}
        assert composed.body == (
            f"\r\n--{mix}\r\n"
            + _attachment_section("notes.txt", "text/plain", b"first file")
            + f"\r\n--{mix}\r\n"
            + _attachment_section("data.json", "application/json", b'{"a": 1}')
            + f"\r\n--{mix}--\r\n"
        )

    def test_attachment_order_follows_input(
        self, composer: MessageComposer, message: Message, files: list[Path]
    ) -> None:
        message.set_attachments([str(f) for f in reversed(files)])

        body = composer.compose(message).body

        assert body.index('name="data.json"') < body.index('name="notes.txt"')

    def test_plain_with_attachment(self, composer: MessageComposer, message: Message, files: list[Path]) -> None:
        message.set_text_plain("see attached")
        message.set_attachments(str(files[0]))
        mix = message.boundary_mixed

        composed = composer.compose(message)

        assert composed.body == (
            f"\r\n--{mix}\r\n" + PLAIN_HEADERS + "see attached\r\n"
            f"\r\n--{mix}\r\n"
            + _attachment_section("notes.txt", "text/plain", b"first file")
            + f"\r\n--{mix}--\r\n"
        )

    def test_html_with_attachment(self, composer: MessageComposer, message: Message, files: list[Path]) -> None:
        message.set_text_html("<b>see attached</b>")
        message.set_attachments(str(files[0]))
        mix = message.boundary_mixed

        body = composer.compose(message).body

        assert body.startswith(f"\r\n--{mix}\r\n" + HTML_HEADERS + "<b>see attached</b>\r\n")
        assert body.endswith(f"\r\n--{mix}--\r\n")

    def test_alternative_nested_in_mixed(
        self, composer: MessageComposer, message: Message, files: list[Path]
    ) -> None:
        message.set_text_plain("plain")
        message.set_text_html("<p>html</p>")
        message.set_attachments(str(files[0]))
        mix = message.boundary_mixed
        alt = message.boundary_alternative

        composed = composer.compose(message)

        assert composed.headers == {"Content-Type": f'multipart/mixed; boundary="{mix}"'}
        assert composed.body == (
            f"\r\n--{mix}\r\n"
            f'Content-Type: multipart/alternative;\r\n boundary="{alt}"\r\n\r\n'
            f"\r\n--{alt}\r\n" + PLAIN_HEADERS + "plain\r\n"
            f"\r\n--{alt}\r\n" + HTML_HEADERS + "<p>html</p>\r\n"
            f"\r\n--{alt}--\r\n"
            f"\r\n--{mix}\r\n"
            + _attachment_section("notes.txt", "text/plain", b"first file")
            + f"\r\n--{mix}--\r\n"
        )

    def test_lenient_skip_of_every_attachment_without_text_fails(
        self, composer: MessageComposer, message: Message, tmp_path: Path
    ) -> None:
        message.set_attachments(str(tmp_path / "missing.pdf"))
        message.set_validate_attachment_errors(False)

        with pytest.raises(ComposeError):
            composer.compose(message)

    def test_lenient_skip_falls_back_to_single_part(
        self, composer: MessageComposer, message: Message, tmp_path: Path
    ) -> None:
        message.set_text_plain("hello")
        message.set_attachments(str(tmp_path / "missing.pdf"))
        message.set_validate_attachment_errors(False)

        composed = composer.compose(message)

        assert composed.headers["Content-Type"] == "text/plain; charset=UTF-8"
        assert composed.body == "hello\r\n"


class TestUrlAttachments:
    URL = "https://cdn.example.com/files/logo.png"

    def test_fetched_attachment_is_included(
        self, composer: MessageComposer, message: Message, fetcher: MagicMock, temp_dir: Path
    ) -> None:
        fetcher.fetch.return_value = b"\x89PNG\r\n"
        message.set_text_plain("logo attached")
        message.set_attachments(self.URL)

        body = composer.compose(message).body

        fetcher.fetch.assert_called_once_with(self.URL, 30)
        assert _attachment_section("logo.png", "image/png", b"\x89PNG\r\n") in body
        assert list(temp_dir.iterdir()) == []

    def test_fetch_failure_strict(
        self, composer: MessageComposer, message: Message, fetcher: MagicMock, temp_dir: Path
    ) -> None:
        fetcher.fetch.side_effect = OSError("connection reset")
        message.set_text_plain("logo attached")
        message.set_attachments(self.URL)

        with pytest.raises(AttachmentLoadError) as exc_info:
            composer.compose(message)

        assert exc_info.value.source == self.URL
        assert list(temp_dir.iterdir()) == []

    def test_fetch_failure_lenient_omits_attachment(
        self, composer: MessageComposer, message: Message, fetcher: MagicMock, temp_dir: Path, files: list[Path]
    ) -> None:
        fetcher.fetch.side_effect = OSError("connection reset")
        message.set_validate_attachment_errors(False)
        message.set_attachments([self.URL, str(files[0])])

        body = composer.compose(message).body

        assert "logo.png" not in body
        assert 'name="notes.txt"' in body
        assert body.count(f"--{message.boundary_mixed}\r\n") == 1
        assert list(temp_dir.iterdir()) == []

    def test_failure_after_earlier_fetch_leaves_no_temp_files(
        self, composer: MessageComposer, message: Message, fetcher: MagicMock, temp_dir: Path
    ) -> None:
        fetcher.fetch.side_effect = [b"first", OSError("timed out")]
        message.set_attachments([self.URL, "https://cdn.example.com/files/second.png"])

        with pytest.raises(AttachmentLoadError, match="second.png"):
            composer.compose(message)

        assert list(temp_dir.iterdir()) == []

    def test_malformed_http_response_lenient_falls_back_to_text(self, message: Message, temp_dir: Path) -> None:
        composer = MessageComposer(Settings(temp_dir=temp_dir), file_store=LocalFileStore(temp_dir))
        message.set_text_plain("x")
        message.set_attachments(self.URL)
        message.set_validate_attachment_errors(False)

        with patch(
            "mime_gateway.attachments.url.urllib.request.urlopen",
            side_effect=http.client.BadStatusLine("garbage"),
        ):
            composed = composer.compose(message)

        assert composed.body == "x\r\n"
        assert list(temp_dir.iterdir()) == []


class TestRenderSections:
    def test_render_text_quoted_printable(self, composer: MessageComposer) -> None:
        assert composer.render_text_section("a=b", TextEncoding.QUOTED_PRINTABLE) == "a=3Db\r\n"

    def test_render_text_base64_has_no_trailing_crlf(self, composer: MessageComposer) -> None:
        assert composer.render_text_section("hello", TextEncoding.BASE64) == "aGVsbG8="

    def test_render_text_none(self, composer: MessageComposer) -> None:
        assert composer.render_text_section("hello", TextEncoding.NONE) == "hello\r\n"

    def test_render_text_accepts_string_encoding(self, composer: MessageComposer) -> None:
        assert composer.render_text_section("hello", "base64") == "aGVsbG8="  # type: ignore[arg-type]

    def test_render_attachment_with_overrides(self, composer: MessageComposer, files: list[Path]) -> None:
        spec = AttachmentSpec(
            source=str(files[0]),
            filename="readme.txt",
            mime_type="text/markdown",
            charset="UTF-8",
            content_id=True,
            disposition="inline",
        )

        section = composer.render_attachment_section(spec)

        assert section == (
            'Content-Type: text/markdown; charset=UTF-8; name="readme.txt"\r\n'
            "Content-Transfer-Encoding: base64\r\n"
            'Content-Disposition: inline; filename="readme.txt"\r\n'
            "Content-ID: <readme.txt>\r\n"
            "\r\n" + base64.b64encode(b"first file").decode("ascii")
        )

    def test_render_attachment_lenient_returns_none(self, composer: MessageComposer, tmp_path: Path) -> None:
        spec = AttachmentSpec(source=str(tmp_path / "missing.pdf"))

        assert composer.render_attachment_section(spec, strict=False) is None
