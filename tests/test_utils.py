from tmdbref.urls import URLBuilder
from tmdbref.utils import coerce_setting_value, is_enabled, slugify


def test_slugify_basic():
    assert slugify("TMDB Items!") == "tmdb-items"


def test_is_enabled_only_accepts_one():
    assert is_enabled("1") is True
    assert is_enabled(" 1 ") is True
    assert is_enabled("0") is False
    assert is_enabled("true") is False
    assert is_enabled(None) is False


def test_coerce_setting_value():
    assert coerce_setting_value(True) == "1"
    assert coerce_setting_value(False) == "0"
    assert coerce_setting_value(None) == ""
    assert coerce_setting_value(5) == "5"


def test_url_builder_routes_images_through_service():
    builder = URLBuilder("https://cloud.example.com/", "tmdb")

    assert builder.build_image_url("w500", "/kqjL17yufvn9OVLyXYpvtyrFfak.jpg") == (
        "https://cloud.example.com/images/w500/kqjL17yufvn9OVLyXYpvtyrFfak.jpg"
    )
    assert builder.build_image_url("w500", None) == ""
    assert builder.build_image_url("w500", "") == ""
    assert builder.build_absolute_url("https://other.example.com/x") == "https://other.example.com/x"
    assert builder.image_path("app-dark.svg") == "/static/tmdb/img/app-dark.svg"
