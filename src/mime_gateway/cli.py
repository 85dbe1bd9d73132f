"""CLI entry point for mime-gateway."""

import argparse
import sys
from pathlib import Path

from mime_gateway.config import ConfigError, get_settings_eager
from mime_gateway.exceptions import MimeGatewayError
from mime_gateway.gateway import StreamGateway
from mime_gateway.models import TextEncoding


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mime-gateway",
        description="Compose MIME email messages",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compose_parser = subparsers.add_parser(
        "compose",
        help="Compose a message and print it to stdout",
    )
    compose_parser.add_argument("--from", dest="sender", required=True, help="Sender email address")
    compose_parser.add_argument("--from-name", default="", help="Sender display name")
    compose_parser.add_argument(
        "--to",
        action="append",
        required=True,
        help="Recipient address; repeat or separate with commas",
    )
    compose_parser.add_argument("--reply-to", help="Reply-To email address")
    compose_parser.add_argument("--reply-to-name", help="Reply-To display name")
    compose_parser.add_argument("--subject", required=True)
    compose_parser.add_argument("--text", type=Path, help="File with the plain text body")
    compose_parser.add_argument("--html", type=Path, help="File with the HTML body")
    compose_parser.add_argument(
        "--attach",
        action="append",
        default=[],
        metavar="SOURCE",
        help="Attachment path or URL (repeatable)",
    )
    compose_parser.add_argument(
        "--encoding",
        choices=[e.value for e in TextEncoding],
        help="Transfer encoding for text sections",
    )
    compose_parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra header field (repeatable)",
    )
    compose_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skip attachments that can not be loaded instead of failing",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "compose":
        return _handle_compose(args)

    return 0


def _handle_compose(args: argparse.Namespace) -> int:
    """Handle compose subcommand."""
    try:
        settings = get_settings_eager()
    except ConfigError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    gateway = StreamGateway(sys.stdout, settings)
    message = gateway.message
    try:
        message.set_from(args.sender, args.from_name)
        message.set_recipients(",".join(args.to))
        if args.reply_to:
            message.set_reply_to_email_address(args.reply_to)
        if args.reply_to_name:
            message.set_reply_to_name(args.reply_to_name)
        message.set_subject(args.subject)
        if args.text:
            message.set_text_plain(args.text.read_text(encoding="utf-8"))
        if args.html:
            message.set_text_html(args.html.read_text(encoding="utf-8"))
        message.set_attachments(args.attach)
        if args.encoding:
            message.set_text_encoding(args.encoding)
        if args.lenient:
            message.set_validate_attachment_errors(False)
        for header in args.header:
            name, sep, value = header.partition(":")
            if not sep or not name.strip():
                print(f"✗ Invalid header field: {header}", file=sys.stderr)
                return 1
            message.append_header_field(name.strip(), value.strip())

        gateway.send()
    except MimeGatewayError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"✗ Cannot read body file: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
