#!/usr/bin/env python3
"""Smoke-test the gateway token exchange from an operator's shell.

Reads the service account from IGPT_CLIENT_ID / IGPT_CLIENT_SECRET (or .env)
and reports whether a token could be fetched through the proxy. Neither the
secret nor the token is ever printed.

Usage:
    python scripts/check_token.py [--token-url URL] [--proxy URL] [--timeout 30]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from igpt.config import settings
from igpt.gateway import (
    AuthExchangeError,
    ConfigurationError,
    Credential,
    ProxyDispatcher,
    TokenGatewayClient,
)


async def check(args: argparse.Namespace) -> int:
    try:
        credential = Credential(
            token_url=args.token_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret.get_secret_value(),
        )
        client = TokenGatewayClient(ProxyDispatcher(args.proxy), timeout=args.timeout)
    except ConfigurationError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2

    try:
        token = await client.fetch_token(credential)
    except AuthExchangeError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(
        f"token exchange OK (token_type={token.token_type}, "
        f"expires_in={token.expires_in}, length={len(token.access_token)})"
    )
    return 0


def main():
    parser = argparse.ArgumentParser(description="Check the gateway OAuth2 token exchange")
    parser.add_argument("--token-url", default=settings.token_url, help="Token endpoint URL")
    parser.add_argument("--proxy", default=settings.proxy_url, help="Forward proxy URL ('' for none)")
    parser.add_argument("--timeout", type=float, default=settings.token_timeout, help="Deadline in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s | %(name)s | %(message)s",
    )
    sys.exit(asyncio.run(check(args)))


if __name__ == "__main__":
    main()
