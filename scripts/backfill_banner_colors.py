"""Derive banner colors for profiles that have a banner but no palette yet."""

import argparse

from tipt_profile.db import get_connection
from tipt_profile.palette.extractor import FALLBACK_PALETTE, extract_dominant_colors
from tipt_profile.profiles.repository import list_profiles, set_banner_colors
from tipt_profile.profiles.storage import resolve_upload


def _banner_source(banner_url: str) -> str:
    """Remote banners are fetched; object keys resolve to the upload directory."""
    if banner_url.startswith(("http://", "https://")):
        return banner_url
    return str(resolve_upload(banner_url))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--force", action="store_true", help="Re-extract every banner")
    parser.add_argument("--dry-run", action="store_true", help="Print colors without saving")
    args = parser.parse_args()

    conn = get_connection()
    profiles = [
        p for p in list_profiles(conn)
        if p.profile_banner_url and (args.force or p.banner_colors is None)
    ]
    print(f"Found {len(profiles)} profiles to process\n")

    fallbacks = 0
    for i, profile in enumerate(profiles, 1):
        colors = extract_dominant_colors(_banner_source(profile.profile_banner_url))
        if colors == list(FALLBACK_PALETTE):
            fallbacks += 1
        print(f"[{i}/{len(profiles)}] {profile.profile_id}: {', '.join(colors)}")
        if not args.dry_run:
            set_banner_colors(conn, profile.profile_id, colors)

    conn.close()
    print(f"\nDone! {len(profiles)} profiles, {fallbacks} used the fallback palette.")


if __name__ == "__main__":
    main()
