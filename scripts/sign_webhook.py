"""Print the X-Webhook-Signature value for a request body."""

from __future__ import annotations

import argparse
import os
import sys

from src.aspect_service.webhook.signature import sign_payload


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sign a webhook body with HMAC-SHA256.")
    parser.add_argument("body", help="Raw JSON body, or '-' to read stdin.")
    parser.add_argument("--secret", default=None, help="Secret (defaults to WEBHOOK_SECRET).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    secret = args.secret or os.getenv("WEBHOOK_SECRET", "")
    if not secret:
        print("a secret is required (--secret or WEBHOOK_SECRET)", file=sys.stderr)
        return 2
    body = sys.stdin.read() if args.body == "-" else args.body
    print(sign_payload(body, secret))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
