"""Tests for profile document CRUD operations."""

import json

import pytest
from conftest import make_profile

from tipt_profile.profiles.repository import (
    add_gallery_image,
    get_profile,
    get_profile_by_domain,
    list_profiles,
    save_profile,
    set_banner_colors,
)


def test_save_and_get_profile(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    result = get_profile(db_conn, "uid_001")
    assert result is not None
    assert result.display_name == "Dylan Dalal"
    assert result.domain == "dylandalal"
    assert result.accepts_apple_pay is True
    assert result.accepts_google_pay is False
    assert result.images == ["recipients/uid_001/gallery_1.jpg"]
    assert result.banner_colors is None
    assert result.created_at is not None


def test_get_missing_profile(db_conn):
    assert get_profile(db_conn, "nobody") is None


def test_save_profile_upserts(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    sample_profile.city = "Denver"
    save_profile(db_conn, sample_profile)

    count = db_conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
    assert count == 1
    assert get_profile(db_conn, "uid_001").city == "Denver"


def test_get_profile_by_domain(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    assert get_profile_by_domain(db_conn, "DylanDalal").profile_id == "uid_001"
    assert get_profile_by_domain(db_conn, "someone-else") is None


@pytest.mark.parametrize("domain", ["ab", "-band", "my--band", "Has Space", "admin"])
def test_save_profile_rejects_bad_handles(db_conn, domain):
    with pytest.raises(ValueError):
        save_profile(db_conn, make_profile("p1", domain=domain))


def test_save_profile_rejects_taken_handle(db_conn):
    save_profile(db_conn, make_profile("p1", domain="the-band"))
    save_profile(db_conn, make_profile("p1", domain="the-band"))  # same owner is fine
    with pytest.raises(ValueError, match="already taken"):
        save_profile(db_conn, make_profile("p2", domain="the-band"))


def test_set_banner_colors(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    set_banner_colors(
        db_conn, "uid_001", ["#ff2020", "#20e040", "#2060ff"], banner_url="recipients/uid_001/b.png"
    )
    result = get_profile(db_conn, "uid_001")
    assert result.banner_colors == ["#ff2020", "#20e040", "#2060ff"]
    assert result.profile_banner_url == "recipients/uid_001/b.png"


def test_set_banner_colors_validates(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    with pytest.raises(ValueError):
        set_banner_colors(db_conn, "uid_001", ["#ff2020", "#20e040"])
    with pytest.raises(ValueError):
        set_banner_colors(db_conn, "uid_001", ["#ff2020", "#20e040", "blue"])
    with pytest.raises(ValueError, match="not found"):
        set_banner_colors(db_conn, "nobody", ["#ff2020", "#20e040", "#2060ff"])


def test_malformed_stored_palette_is_dropped_on_read(db_conn, sample_profile):
    save_profile(db_conn, sample_profile)
    db_conn.execute(
        "UPDATE profiles SET banner_colors = ? WHERE profile_id = ?",
        [json.dumps(["#ff2020"]), "uid_001"],
    )
    assert get_profile(db_conn, "uid_001").banner_colors is None


def test_add_gallery_image_skips_duplicates(db_conn):
    save_profile(db_conn, make_profile("p1"))
    add_gallery_image(db_conn, "p1", "recipients/p1/a.jpg")
    images = add_gallery_image(db_conn, "p1", "recipients/p1/a.jpg")
    assert images == ["recipients/p1/a.jpg"]
    assert get_profile(db_conn, "p1").images == ["recipients/p1/a.jpg"]


def test_list_profiles(db_conn):
    save_profile(db_conn, make_profile("p1", domain="first"))
    save_profile(db_conn, make_profile("p2", domain="second"))
    assert {p.profile_id for p in list_profiles(db_conn)} == {"p1", "p2"}
