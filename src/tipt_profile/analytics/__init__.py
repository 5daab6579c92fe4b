"""Analytics CLI: record events and inspect profile dashboards."""

import argparse


def main() -> None:
    """CLI entry point for analytics operations."""
    parser = argparse.ArgumentParser(description="tipt profile analytics")
    subparsers = parser.add_subparsers(dest="command")

    # record
    rec_parser = subparsers.add_parser("record", help="Record a profile view or link click")
    rec_parser.add_argument("--profile-id", required=True, help="Profile ID")
    rec_parser.add_argument(
        "--kind",
        choices=["profile_view", "link_click"],
        default="profile_view",
        help="Event type (default: profile_view)",
    )
    rec_parser.add_argument("--link-type", help="Link tag for clicks, e.g. spotify")
    rec_parser.add_argument("--link-url", help="Resolved link URL for clicks")
    rec_parser.add_argument("--visitor-id", help="Visitor token (generated if omitted)")
    rec_parser.add_argument(
        "--locate", action="store_true", help="Resolve visitor location from this machine's IP"
    )

    # dashboard
    dash_parser = subparsers.add_parser("dashboard", help="Show dashboard numbers for a profile")
    dash_parser.add_argument("--profile-id", required=True, help="Profile ID")
    dash_parser.add_argument(
        "--recent", type=int, default=10, help="Recent events to print (default: 10)"
    )

    # rebuild
    rb_parser = subparsers.add_parser("rebuild", help="Recompute summaries from the event log")
    rb_parser.add_argument("--profile-id", help="Only this profile (default: all)")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from tipt_profile.logging_config import setup_logging

    setup_logging()

    if args.command == "record":
        _cmd_record(args)
    elif args.command == "dashboard":
        _cmd_dashboard(args)
    elif args.command == "rebuild":
        _cmd_rebuild(args)


def _cmd_record(args: argparse.Namespace) -> None:
    """Record a single event."""
    from tipt_profile.analytics.location import get_visitor_location
    from tipt_profile.analytics.tracker import new_visitor_id, record_event
    from tipt_profile.db import get_connection
    from tipt_profile.models import EventDetail

    if args.kind == "link_click" and not args.link_type:
        print("Error: --link-type is required for link_click")
        return

    location = get_visitor_location().location if args.locate else None
    detail = EventDetail(
        link_type=args.link_type,
        link_url=args.link_url,
        visitor_id=args.visitor_id or new_visitor_id(),
        location=location,
        user_agent="tipt-analytics-cli",
    )

    conn = get_connection()
    event_id = record_event(conn, args.profile_id, args.kind, detail)
    conn.close()
    if event_id is None:
        print("Event was not recorded (see log).")
        return
    print(f"Recorded {args.kind} for {args.profile_id}: {event_id}")


def _cmd_dashboard(args: argparse.Namespace) -> None:
    """Print dashboard numbers as Rich tables."""
    from rich.console import Console
    from rich.table import Table

    from tipt_profile.analytics.tracker import get_analytics_data
    from tipt_profile.db import get_connection

    conn = get_connection()
    view = get_analytics_data(conn, args.profile_id)
    conn.close()

    console = Console()
    console.print(f"[bold]Profile:[/bold] {args.profile_id}")
    console.print(f"  Profile views: {view.profile_views}")
    console.print(f"  Link clicks:   {view.link_clicks}")
    console.print(f"  Click rate:    {view.click_rate}%")

    monthly = Table(title="Monthly")
    monthly.add_column("Month")
    monthly.add_column("Views", justify="right")
    monthly.add_column("Clicks", justify="right")
    for stat in view.monthly_stats:
        monthly.add_row(stat.month, str(stat.views), str(stat.clicks))
    console.print(monthly)

    links = Table(title="Top links")
    links.add_column("Link")
    links.add_column("Clicks", justify="right")
    links.add_column("Share", justify="right")
    for link in view.top_links:
        links.add_row(link.link, str(link.clicks), f"{link.percentage}%")
    console.print(links)

    recent = Table(title="Recent activity")
    recent.add_column("When")
    recent.add_column("Type")
    recent.add_column("Link")
    recent.add_column("Location")
    for event in view.recent_activity[: args.recent]:
        kind = "View" if event.event_type == "profile_view" else "Click"
        recent.add_row(
            event.created_at.strftime("%Y-%m-%d %H:%M"),
            kind,
            event.link_type or "",
            event.location or "",
        )
    console.print(recent)


def _cmd_rebuild(args: argparse.Namespace) -> None:
    """Recompute summary counters from the event log."""
    from tipt_profile.analytics.repository import list_profile_ids, rebuild_summary
    from tipt_profile.db import get_connection

    conn = get_connection()
    profile_ids = [args.profile_id] if args.profile_id else list_profile_ids(conn)
    for profile_id in profile_ids:
        summary = rebuild_summary(conn, profile_id)
        if summary is None:
            print(f"  {profile_id}: no events")
            continue
        print(
            f"  {profile_id}: {summary.total_profile_views} views, "
            f"{summary.total_link_clicks} clicks"
        )
    conn.close()
    print(f"Rebuilt {len(profile_ids)} summaries.")
