"""CLI for the Willys API client.

Logs in (headless browser by default), then runs one command against the
shop. Credentials come from WILLYS_USERNAME / WILLYS_PASSWORD (a .env file
is loaded if present).

Usage:
    willys search mjölk --sort-by cheapest --max-price-per-unit 20
    willys add 101233933_ST 2
    willys remove 101233933_ST 1
    willys cart
    willys slots 11151
    willys checkout
    willys --direct-login cart      # Skip the browser, log in over HTTP
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from willys.api.client import WillysAPIClient
from willys.api.credentials import PASSWORD_ENV, USERNAME_ENV, WillysCredentials
from willys.api.errors import WillysError
from willys.api.models import CartSummary, SearchPreferences
from willys.api.session import WillysSession
from willys.core.config import get_base_url, load_config
from willys.core.log import setup_logging

load_dotenv()


def print_cart(cart: CartSummary) -> None:
    if not cart.items:
        print("Your cart is empty.")
        return

    print("Current cart contents:\n")
    for item in cart.items:
        print(f"  - {item.quantity}x {item.name} ({item.product_code})")
        print(f"    {item.price:.2f} kr each = {item.total_price:.2f} kr")
    print()
    print(f"  Subtotal:     {cart.total_price:.2f} kr")
    print(f"  Delivery fee: {cart.delivery_fee:.2f} kr")
    print(f"  Picking fee:  {cart.picking_fee:.2f} kr")
    print(f"  Total:        {cart.final_total:.2f} kr")


async def run_command(client: WillysAPIClient, args: argparse.Namespace) -> None:
    """Dispatch a parsed subcommand."""
    if args.command == "search":
        prefs = None
        if args.sort_by or args.max_price_per_unit or args.require_label:
            prefs = SearchPreferences(
                max_price_per_unit=args.max_price_per_unit or 0.0,
                required_labels=tuple(args.require_label or ()),
                sort_by=args.sort_by or "",
            )
        products = await client.search_products(args.query, args.page, args.size, prefs)
        print(f"Found {len(products)} products for '{args.query}':\n")
        for i, product in enumerate(products, 1):
            print(f"{i}. {product.name} ({product.manufacturer})")
            print(f"   Code: {product.code}")
            print(f"   Price: {product.price}  Compare: {product.compare_price}/{product.compare_price_unit}")
            if product.labels:
                print(f"   Labels: {', '.join(product.labels)}")

    elif args.command == "cart":
        print_cart(await client.get_cart())

    elif args.command == "add":
        print_cart(await client.add_to_cart(args.code, args.quantity))

    elif args.command == "remove":
        print_cart(await client.remove_from_cart(args.code, args.quantity))

    elif args.command == "slots":
        slots = await client.get_available_time_slots(args.postal_code)
        print(f"{len(slots)} delivery slots for {args.postal_code}:\n")
        for slot in slots:
            status = "available" if slot.available else "full"
            print(f"  {slot.date} {slot.window}  {slot.fee:.2f} kr  ({status})")

    elif args.command == "checkout":
        print(f"Checkout URL: {client.get_checkout_url()}")


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    credentials = WillysCredentials.from_env()
    if not credentials.is_valid():
        print(f"Error: {USERNAME_ENV} and {PASSWORD_ENV} must be set")
        return 1

    config = load_config()
    base_url = get_base_url(config)

    async with WillysSession(base_url, config=config) as session:
        try:
            if args.direct_login:
                print("[Auth] Logging in over HTTP...")
                await session.login(credentials.username, credentials.password)
            else:
                print("[Auth] Logging in with headless browser...")
                await session.login_with_browser(credentials.username, credentials.password)
        except WillysError as e:
            print(f"[Auth] Login failed: {e}")
            return 1
        print("[Auth] Logged in")

        client = WillysAPIClient(session)
        try:
            await run_command(client, args)
        except WillysError as e:
            print(f"\nError ({e.kind.value}): {e}")
            return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Willys.se grocery shopping from the command line")
    parser.add_argument(
        "--direct-login",
        action="store_true",
        help="Log in over HTTP instead of a headless browser",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search for products")
    search.add_argument("query", help="Search term (e.g., 'mjölk')")
    search.add_argument("--page", type=int, default=0, help="Page number (default: 0)")
    search.add_argument("--size", type=int, default=30, help="Results per page (default: 30)")
    search.add_argument(
        "--sort-by",
        choices=["cheapest", "best_value", "highest_quality"],
        default=None,
        help="Rank results",
    )
    search.add_argument(
        "--max-price-per-unit",
        type=float,
        default=None,
        help="Drop products above this compare price (kr/kg or kr/l)",
    )
    search.add_argument(
        "--require-label",
        action="append",
        default=None,
        help="Required label, repeatable (e.g., --require-label ekologisk)",
    )

    sub.add_parser("cart", help="Show the cart")

    add = sub.add_parser("add", help="Add a product to the cart")
    add.add_argument("code", help="Product code (e.g., 101233933_ST)")
    add.add_argument("quantity", type=int, nargs="?", default=1, help="Quantity (default: 1)")

    remove = sub.add_parser("remove", help="Remove a product from the cart")
    remove.add_argument("code", help="Product code")
    remove.add_argument("quantity", type=int, nargs="?", default=0, help="Quantity (default: all)")

    slots = sub.add_parser("slots", help="List delivery slots")
    slots.add_argument("postal_code", help="Postal code (e.g., 11151)")

    sub.add_parser("checkout", help="Print the checkout URL")

    return parser


def main():
    """Entry point."""
    args = build_parser().parse_args()
    setup_logging(debug=args.debug)
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
