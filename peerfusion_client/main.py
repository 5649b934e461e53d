#!/usr/bin/env python
# Main entry point for the PeerFusion chat client
import asyncio
import logging

from peerfusion_client.utils.config import config
from peerfusion_client.auth.auth_view import AuthView
from peerfusion_client.ui.chat_view import ChatView
from peerfusion_client.ui.console import console


async def handle_authentication(auto_login: bool = True) -> bool:
    """Handle user authentication flow"""
    auth_view = AuthView()

    if auto_login and await auth_view.auto_login():
        return True

    return await auth_view.show_auth_menu()


async def run(auto_login: bool = True):
    """Run the main application"""
    if not await handle_authentication(auto_login):
        console.print("[yellow]Exiting due to authentication failure.[/yellow]")
        return

    try:
        await ChatView().start()
    finally:
        console.print("[blue]Thank you for using PeerFusion![/blue]")


def main(argv=None):
    args = config.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        asyncio.run(run(auto_login=not args.no_auto_login))
    except KeyboardInterrupt:
        console.print("\n[yellow]Application terminated by user[/yellow]")


if __name__ == "__main__":
    main()
