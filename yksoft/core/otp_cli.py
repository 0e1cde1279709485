#!/usr/bin/env python3
"""
otp_cli.py — CLI for the soft token (multi-token version)

Subcommands:
- new    : create a token (optionally importing its identity), print registration info
- otp    : generate the next OTP of a token
- info   : print registration info, counter and session of a token
- list   : list stored tokens
- delete : remove a token
"""

import argparse
import sys

from yksoft import config
from yksoft.common.log_handler import log, set_verbose
from yksoft.core.errors import YkSoftError
from yksoft.core.modhex import hex_decode, modhex_decode
from yksoft.database.token_manager import (
    TokenOverrides,
    create_token,
    delete_token,
    emit_otp,
    list_tokens,
    load_token,
    registration_text,
    save_token,
)


# --- CLI command handlers ---
def cmd_new(args):
    overrides = None
    if args.public_id or args.private_id or args.aes_key or args.counter is not None:
        overrides = TokenOverrides(
            public_id=modhex_decode(args.public_id) if args.public_id else None,
            private_id=hex_decode(args.private_id) if args.private_id else None,
            aes_key=hex_decode(args.aes_key) if args.aes_key else None,
            counter=args.counter or 0,
        )

    handle = create_token(args.name, overrides=overrides, token_dir=args.dir)
    save_token(handle)
    print(f"[*] Token '{handle.name}' created. Registration info:")
    print(registration_text(handle))


def cmd_otp(args):
    handle = load_token(args.name, token_dir=args.dir)
    otp, must_persist = emit_otp(handle)
    if must_persist:
        # never show an OTP whose counters did not reach the disk
        save_token(handle)
    print(otp)


def cmd_info(args):
    handle = load_token(args.name, token_dir=args.dir)
    status = handle.token.status()
    print(f"[token={handle.name}] Registration info:")
    print(registration_text(handle))
    print(f"Counter: {status['counter']}  Session: {status['session']}")


def cmd_list(args):
    for name in list_tokens(token_dir=args.dir):
        print(name)


def cmd_delete(args):
    delete_token(args.name, token_dir=args.dir)
    print(f"[*] Token '{args.name}' deleted.")


def cmd_help(args):
    print("'yksoft -h' for help.")


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--dir", default=None, help=f"Token directory (default: {config.TOKEN_DIR})")
    common.add_argument("--verbose", action="store_true", help="Verbose output")

    p = argparse.ArgumentParser(description="Software Yubikey token: Yubikey format OTP generator")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help, verbose=False)

    # new
    pn = sub.add_parser("new", parents=[common], help="Create a new token")
    pn.add_argument("name", nargs="?", default="", help=f"Token name (default: {config.DEFAULT_TOKEN_NAME})")
    pn.add_argument("--public-id", help="Public ID to import (12 modhex chars)")
    pn.add_argument("--private-id", help="Private ID to import (12 hex chars)")
    pn.add_argument("--aes-key", help="AES key to import (32 hex chars)")
    pn.add_argument("--counter", type=int, help="Last counter value used by the imported token")
    pn.set_defaults(func=cmd_new)

    # otp
    po = sub.add_parser("otp", parents=[common], help="Generate the next OTP")
    po.add_argument("name", nargs="?", default="", help="Token name")
    po.set_defaults(func=cmd_otp)

    # info
    pi = sub.add_parser("info", parents=[common], help="Show registration info and counters")
    pi.add_argument("name", nargs="?", default="", help="Token name")
    pi.set_defaults(func=cmd_info)

    # list
    pl = sub.add_parser("list", parents=[common], help="List stored tokens")
    pl.set_defaults(func=cmd_list)

    # delete
    pd = sub.add_parser("delete", parents=[common], help="Delete a token")
    pd.add_argument("name", help="Token name")
    pd.set_defaults(func=cmd_delete)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(args.verbose)
    try:
        args.func(args)
    except YkSoftError as e:
        log.debug(f"{args.cmd} failed: {e!r}")
        print(f"[!] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
