# main.py
"""
CLI entry point for the CloudLink client.

Usage:
    python main.py online
    python main.py orders-by-status pending
    python main.py place-order '{"recipeId": 10001, "parameters": [30, 60]}'
    python main.py --host https://cloudlink.example.com --debug devices
"""

import argparse
import asyncio
import json
import logging
import sys

import config
from clients import CloudLinkClient
from utils import setup_logging


def _json_arg(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")


def _bool_arg(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "yes", "1", "like"):
        return True
    if lowered in ("false", "no", "0", "dislike"):
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Talk to a CloudLink order-management server."
    )
    parser.add_argument("--host", help="CloudLink base URL (env: CLOUDLINK_HOST)")
    parser.add_argument("--user", help="Basic auth user (env: CLOUDLINK_USER)")
    parser.add_argument(
        "--password", help="Basic auth password (env: CLOUDLINK_PASSWORD)"
    )
    parser.add_argument(
        "--verify-tls",
        action="store_true",
        default=None,
        help="Verify the server TLS certificate",
    )
    parser.add_argument(
        "--timeout", type=float, help="Request timeout in seconds (default: none)"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("online", help="Check whether the server answers helloWorld")

    p = sub.add_parser("machine-status", help="Report the machine status")
    p.add_argument("status")

    p = sub.add_parser("orders-by-status", help="List orders with a status")
    p.add_argument("status")

    p = sub.add_parser("orders-filtered", help="List orders matching statuses")
    p.add_argument("status", nargs="+")

    p = sub.add_parser("place-order", help="Place an order (JSON)")
    p.add_argument("order", type=_json_arg)

    p = sub.add_parser("update-status", help="Update the status of an order")
    p.add_argument("order_id")
    p.add_argument("status")

    p = sub.add_parser("update-order", help="Update an order (JSON)")
    p.add_argument("order", type=_json_arg)

    p = sub.add_parser("set-barcode", help="Set the barcode of an order")
    p.add_argument("order_id")
    p.add_argument("barcode")

    p = sub.add_parser("orders-since", help="Orders placed since a timestamp")
    p.add_argument("timestamp", nargs="?", help="UTC ISO-8601 (default: 1 min ago)")

    p = sub.add_parser("orders-updated-since", help="Orders updated recently")
    p.add_argument("--seconds", type=float, default=60)

    sub.add_parser("recipes", help="List recipes")
    sub.add_parser("load-default-recipes", help="Load the default recipes")

    p = sub.add_parser("feedback", help="Give feedback on an order")
    p.add_argument("order_id")
    p.add_argument("like", type=_bool_arg)
    p.add_argument("text", nargs="?", default="")

    sub.add_parser("devices", help="List registered push devices")

    p = sub.add_parser("register-device", help="Register a push device")
    p.add_argument("reg_id")

    p = sub.add_parser("reload-order", help="Reload an order on the job board")
    p.add_argument("order_id")

    return parser


async def run_command(client: CloudLinkClient, args: argparse.Namespace):
    """Dispatch the parsed subcommand to the matching client operation."""
    command = args.command
    if command == "online":
        return await client.is_online()
    if command == "machine-status":
        return await client.report_machine_status(args.status)
    if command == "orders-by-status":
        return await client.get_orders_by_status(args.status)
    if command == "orders-filtered":
        status = args.status[0] if len(args.status) == 1 else args.status
        return await client.get_orders_filtered(status)
    if command == "place-order":
        return await client.place_order(args.order)
    if command == "update-status":
        return await client.update_order_status(args.order_id, args.status)
    if command == "update-order":
        return await client.update_order(args.order)
    if command == "set-barcode":
        return await client.set_barcode(args.order_id, args.barcode)
    if command == "orders-since":
        return await client.get_orders_since(args.timestamp)
    if command == "orders-updated-since":
        return await client.get_orders_updated_since(args.seconds)
    if command == "recipes":
        return await client.get_recipes()
    if command == "load-default-recipes":
        return await client.load_default_recipes()
    if command == "feedback":
        return await client.give_feedback(args.order_id, args.like, args.text)
    if command == "devices":
        return await client.get_registered_devices()
    if command == "register-device":
        return await client.register_device(args.reg_id)
    if command == "reload-order":
        return await client.reload_order_in_jobboard(args.order_id)
    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, call CloudLink, and print the result as JSON."""
    args = build_parser().parse_args(argv)

    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        cfg = config.get_client_config(
            host=args.host,
            username=args.user,
            password=args.password,
            verify_tls=args.verify_tls,
            timeout=args.timeout,
        )
        logger.info("CloudLink host: %s", cfg.host)
        if not cfg.verify_tls:
            logger.warning("TLS certificate verification is disabled")

        client = CloudLinkClient(cfg, log=logging.getLogger("cloudlink"))
        result = asyncio.run(run_command(client, args))
        print(json.dumps(result, indent=2))
    except Exception as e:
        logger.error("Command %s failed: %s", args.command, e)
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
