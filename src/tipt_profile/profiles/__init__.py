"""Profile CLI: manage profile documents and banner uploads in DuckDB."""

import argparse


def main() -> None:
    """CLI entry point for profile management."""
    parser = argparse.ArgumentParser(description="tipt profile manager")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database schema")

    # create
    cr_parser = subparsers.add_parser("create", help="Create or update a profile")
    cr_parser.add_argument("--profile-id", required=True, help="Profile ID")
    cr_parser.add_argument("--name", help="Display name used to derive the handle")
    cr_parser.add_argument("--domain", help="Public handle (derived from --name if omitted)")
    cr_parser.add_argument("--email", help="Contact email")

    # show
    show_parser = subparsers.add_parser("show", help="Show a profile document")
    show_group = show_parser.add_mutually_exclusive_group(required=True)
    show_group.add_argument("--profile-id", help="Profile ID")
    show_group.add_argument("--domain", help="Public handle or full profile URL")

    # list
    subparsers.add_parser("list", help="List profiles in DB")

    # upload-banner
    ub_parser = subparsers.add_parser(
        "upload-banner", help="Store a banner image and derive the page colors"
    )
    ub_parser.add_argument("--profile-id", required=True, help="Profile ID")
    ub_parser.add_argument("--file", required=True, help="Path to the banner image")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from tipt_profile.logging_config import setup_logging

    setup_logging()

    if args.command == "init-db":
        from tipt_profile.db import get_connection

        conn = get_connection()
        conn.close()
        print("Database initialized successfully.")

    elif args.command == "create":
        _cmd_create(args)

    elif args.command == "show":
        _cmd_show(args)

    elif args.command == "list":
        from tipt_profile.db import get_connection
        from tipt_profile.profiles.domain import format_domain
        from tipt_profile.profiles.repository import list_profiles

        conn = get_connection()
        profiles = list_profiles(conn)
        conn.close()
        for profile in profiles:
            handle = format_domain(profile.domain) or "-"
            print(f"  {profile.profile_id}  {handle:<30} {profile.display_name}")

    elif args.command == "upload-banner":
        _cmd_upload_banner(args)


def _cmd_create(args: argparse.Namespace) -> None:
    """Create or update a minimal profile document."""
    from tipt_profile.db import get_connection
    from tipt_profile.models import ProfileDocument
    from tipt_profile.profiles.domain import create_domain, format_domain
    from tipt_profile.profiles.repository import get_profile, save_profile

    conn = get_connection()
    profile = get_profile(conn, args.profile_id) or ProfileDocument(profile_id=args.profile_id)
    if args.name:
        first, _, last = args.name.partition(" ")
        profile.first_name = first
        profile.last_name = last or None
    domain = args.domain or (create_domain(args.name) if args.name else None)
    if domain:
        profile.domain = domain
    if args.email:
        profile.email = args.email

    try:
        save_profile(conn, profile)
    except ValueError as e:
        print(f"Error: {e}")
        return
    finally:
        conn.close()
    print(f"Saved profile {profile.profile_id} ({format_domain(profile.domain) or 'no handle'}).")


def _cmd_show(args: argparse.Namespace) -> None:
    """Print one profile document."""
    from tipt_profile.db import get_connection
    from tipt_profile.profiles.domain import extract_domain_from_url
    from tipt_profile.profiles.repository import get_profile, get_profile_by_domain

    conn = get_connection()
    if args.profile_id:
        profile = get_profile(conn, args.profile_id)
    else:
        profile = get_profile_by_domain(conn, extract_domain_from_url(args.domain))
    conn.close()

    if profile is None:
        print("Profile not found")
        return

    for key, value in vars(profile).items():
        if value in (None, [], False):
            continue
        print(f"  {key:<20} {value}")


def _cmd_upload_banner(args: argparse.Namespace) -> None:
    """Store a banner and write its palette onto the profile."""
    from pathlib import Path

    from tipt_profile.db import get_connection
    from tipt_profile.profiles.banner import upload_banner

    path = Path(args.file)
    if not path.exists():
        print(f"Error: file does not exist: {path}")
        return

    conn = get_connection()
    try:
        profile = upload_banner(conn, args.profile_id, path.name, path.read_bytes())
    except ValueError as e:
        print(f"Error: {e}")
        return
    finally:
        conn.close()
    print(f"Banner stored at {profile.profile_banner_url}")
    print(f"Banner colors: {', '.join(profile.banner_colors or [])}")
