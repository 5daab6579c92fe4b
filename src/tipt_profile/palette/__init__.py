"""Palette CLI: extract banner colors from an image."""

import argparse


def main() -> None:
    """CLI entry point for palette extraction."""
    parser = argparse.ArgumentParser(description="tipt banner palette extraction")
    subparsers = parser.add_subparsers(dest="command")

    # extract
    ex_parser = subparsers.add_parser("extract", help="Extract [primary, secondary, highlight]")
    ex_parser.add_argument("image", help="Image file path or http(s) URL")
    ex_parser.add_argument(
        "--profile-id",
        help="Also write the colors onto this profile's bannerColors",
    )
    ex_parser.add_argument("--log-level", default=None, help="Override TIPT_LOG_LEVEL")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from tipt_profile.logging_config import setup_logging

    setup_logging(args.log_level)

    if args.command == "extract":
        _cmd_extract(args)


def _cmd_extract(args: argparse.Namespace) -> None:
    """Print the palette and optionally persist it."""
    from rich.console import Console
    from rich.text import Text

    from tipt_profile.palette.extractor import extract_dominant_colors

    colors = extract_dominant_colors(args.image)

    console = Console()
    for role, color in zip(("primary", "secondary", "highlight"), colors):
        swatch = Text("      ", style=f"on {color.lower()}")
        console.print(swatch, f"{role:<10} {color}")

    if args.profile_id:
        from tipt_profile.db import get_connection
        from tipt_profile.profiles.repository import set_banner_colors

        conn = get_connection()
        try:
            set_banner_colors(conn, args.profile_id, colors)
        except ValueError as e:
            print(f"Error: {e}")
            return
        finally:
            conn.close()
        print(f"Saved banner colors on profile {args.profile_id}.")
